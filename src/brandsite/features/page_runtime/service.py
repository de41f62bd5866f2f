from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta

import simpy

from brandsite.core.config import SiteConfig
from brandsite.core.logging import get_logger
from brandsite.core.rng import RNG
from brandsite.core.types import PageContext
from brandsite.features.animation.loader import AssetLoader, SimulatedAssetLoader
from brandsite.features.animation.service import AnimationSelector
from brandsite.features.animation.types import DeviceProfile
from brandsite.features.attribution.service import capture_attribution
from brandsite.features.behavior.service import BehaviorTracker
from brandsite.features.brands.service import BrandResolver
from brandsite.features.conversion.service import ConversionReporter, NavigationTiming
from brandsite.features.experiments.service import assign_variants
from brandsite.features.storage.service import BrowserStorage
from brandsite.features.telemetry.service import TelemetrySink

from .types import ClickAt, PageViewResult, PageViewScript, ScrollAt


class PageViewRunner:
    """
    Drives one page view on a SimPy clock (env.now = seconds since navigation).

    At content-ready (t=0): attribution capture, variant assignment, behavior
    tracker install and the page_view event run in sequence; the animation
    asset load runs alongside. Interactions replay at their scheduled times,
    and unload reports session_end plus the behavior summary.
    """

    def __init__(
        self,
        *,
        cfg: SiteConfig,
        sink: TelemetrySink,
        page: PageContext,
        device: DeviceProfile | None = None,
        storage: BrowserStorage | None = None,
        rng: RNG | None = None,
        env: simpy.Environment | None = None,
        env_vars: Mapping[str, str] | None = None,
        loader_factory: Callable[[simpy.Environment], AssetLoader] | None = None,
        start_dt: datetime | None = None,
    ) -> None:
        self.cfg = cfg
        self.page = page
        self.device = device or DeviceProfile()
        self.storage = storage or BrowserStorage()
        self.rng = rng or RNG()
        self.env = env or simpy.Environment()
        self.start_dt = (start_dt or datetime.now(UTC)).astimezone(UTC)

        self.brands = BrandResolver(settings=cfg.brand, env=env_vars, page=page)
        self.reporter = ConversionReporter(sink, page)
        self.tracker = BehaviorTracker(self.reporter, cfg.behavior)
        self.selector = AnimationSelector(cfg.animation)
        self.loader = (loader_factory or (lambda e: SimulatedAssetLoader(env=e)))(self.env)

        self._logger = get_logger(__name__, cfg.logging.level)

    def now_utc(self) -> datetime:
        return self.start_dt + timedelta(seconds=float(self.env.now))

    def run(self, script: PageViewScript | None = None) -> PageViewResult:
        script = script or PageViewScript()
        if script.unload_at <= 0:
            raise ValueError("unload_at must be > 0")

        brand = self.brands.resolve()

        decision = self.selector.decide(self.page, self.device, self.storage.local)
        animation = self.selector.start(self.env, decision, self.loader)

        # ----- content ready -----
        attribution = capture_attribution(self.page, self.storage.session, now_utc=self.now_utc())
        variants = assign_variants(
            self.cfg.experiments.definitions,
            self.storage.session,
            self.rng,
            sticky=self.cfg.experiments.sticky,
        )
        self.tracker.start(self.now_utc())
        self.reporter.track("page_view", "engagement", now_utc=self.now_utc())

        self.env.process(self._replay(script))
        if script.timing is not None:
            self.env.process(self._report_performance(script.timing, script.performance_at))

        self.env.run(until=script.unload_at)

        # ----- unload -----
        self.reporter.track("session_end", "engagement", now_utc=self.now_utc())
        summary = self.tracker.session_summary(self.now_utc())

        state = None if animation.is_alive else animation.value
        self._logger.info(
            "page view complete",
            extra={"feature": "page_runtime", "brand": brand.name, "properties": summary},
        )
        return PageViewResult(
            brand=brand.name,
            attribution=attribution,
            variants=variants,
            decision=decision,
            animation_state=state,
            summary=summary,
        )

    def _replay(self, script: PageViewScript):
        for step in sorted(script.interactions, key=lambda s: s.at_s):
            delay = step.at_s - self.env.now
            if delay > 0:
                yield self.env.timeout(delay)
            if isinstance(step, ScrollAt):
                self.tracker.on_scroll(step.scroll_y, step.scroll_height, step.viewport_height)
            elif isinstance(step, ClickAt):
                self.tracker.on_click(step.target, self.now_utc())

    def _report_performance(self, timing: NavigationTiming, at_s: float):
        yield self.env.timeout(at_s)
        self.reporter.track_performance(
            timing,
            now_ms=float(self.env.now) * 1000.0,
            now_utc=self.now_utc(),
        )
