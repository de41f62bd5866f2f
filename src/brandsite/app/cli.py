from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

from brandsite.app.runner import build_context
from brandsite.core.config import load_config
from brandsite.core.types import PageContext
from brandsite.features.animation.types import DeviceProfile
from brandsite.features.behavior.service import ClickTarget
from brandsite.features.brands.types import thaw
from brandsite.features.conversion.service import compute_lead_score
from brandsite.features.page_runtime.types import ClickAt, PageViewScript, ScrollAt
from brandsite.features.telemetry.duckdb_adapter import DuckDBAdapter


def _scroll_step(value: str) -> ScrollAt:
    # "<percent>@<seconds>", against a 5000px page with an 800px viewport
    pct, _, at = value.partition("@")
    return ScrollAt(at_s=float(at or 0), scroll_y=float(pct) / 100.0 * 4200.0)


def _click_step(value: str) -> ClickAt:
    # "<tag>[.class...]@<seconds>"
    target, _, at = value.partition("@")
    tag, *classes = target.split(".")
    return ClickAt(at_s=float(at or 0), target=ClickTarget.of(tag, "", " ".join(classes)))


def _print_json(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False, default=str))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="brandsite")
    parser.add_argument("--config", default="config/site.yaml")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_brand = sub.add_parser("brand", help="Resolve the brand for a host")
    p_brand.add_argument("--url", default=None, help="Page URL used for hostname/port detection")
    p_brand.add_argument("--brand", default=None, help="Explicit override")
    p_brand.add_argument("--field", default=None, help="Dotted path, e.g. contact.solutions.phone")

    p_score = sub.add_parser("score", help="Lead score for a list of actions")
    p_score.add_argument("actions", nargs="*")

    p_submit = sub.add_parser("submit", help="Run a lead-capture submission")
    p_submit.add_argument("--data", required=True, help="JSON file with the form payload")
    p_submit.add_argument("--form-type", default=None)

    p_view = sub.add_parser("pageview", help="Simulate one page view")
    p_view.add_argument("--url", required=True)
    p_view.add_argument("--referrer", default="")
    p_view.add_argument("--scroll", action="append", default=[], help="pct@seconds")
    p_view.add_argument("--click", action="append", default=[], help="tag.class@seconds")
    p_view.add_argument("--unload-at", type=float, default=30.0)
    p_view.add_argument("--effective-type", default=None)
    p_view.add_argument("--reduced-motion", action="store_true")
    p_view.add_argument("--seed", type=int, default=None)

    p_events = sub.add_parser("events", help="Summarize stored telemetry")
    p_events.add_argument("--db", default=None, help="DuckDB file; defaults to storage.duckdb_path")

    p_serve = sub.add_parser("serve", help="Serve /api/submit-form")
    p_serve.add_argument("--host", default="127.0.0.1")
    p_serve.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    if args.cmd == "score":
        _print_json(asdict(compute_lead_score(args.actions)))
        return 0

    if args.cmd == "events":
        path = args.db or load_config(args.config).storage.duckdb_path
        if not path or not Path(path).exists():
            print(f"no telemetry store at {path!r}", file=sys.stderr)
            return 1
        with DuckDBAdapter(path) as adapter:
            _print_json([asdict(c) for c in adapter.event_counts()])
        return 0

    ctx = build_context(args.config, seed=getattr(args, "seed", None))
    try:
        if args.cmd == "brand":
            page = PageContext(url=args.url) if args.url else None
            resolver = ctx.brand_resolver(page)
            brand = resolver.resolve(args.brand)
            if args.field:
                _print_json(thaw(resolver.get_field(args.field, brand)))
            else:
                print(brand.name)
            return 0

        if args.cmd == "submit":
            form = json.loads(Path(args.data).read_text())
            if args.form_type:
                form["formType"] = args.form_type
            resp = ctx.leads.submit(form)
            _print_json(resp.body)
            return 0 if resp.status == 200 else 1

        if args.cmd == "pageview":
            script = PageViewScript(
                interactions=tuple(
                    [_scroll_step(s) for s in args.scroll] + [_click_step(c) for c in args.click]
                ),
                unload_at=args.unload_at,
            )
            device = DeviceProfile(
                effective_type=args.effective_type,
                prefers_reduced_motion=args.reduced_motion,
            )
            page = PageContext(url=args.url, referrer=args.referrer)
            result = ctx.page_view(page, device=device).run(script)
            state = result.animation_state
            _print_json(
                {
                    "brand": result.brand,
                    "attribution": asdict(result.attribution),
                    "variants": result.variants,
                    "animation": None if state is None else state.value,
                    "summary": result.summary,
                }
            )
            return 0

        if args.cmd == "serve":
            from brandsite.app.server import create_app

            create_app(ctx).run(host=args.host, port=args.port)
            return 0
    finally:
        ctx.close()

    return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
