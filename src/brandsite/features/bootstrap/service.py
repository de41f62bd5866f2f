from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from brandsite.core.config import SiteConfig
from brandsite.core.logging import get_logger
from brandsite.core.rng import RNG
from brandsite.core.types import PageContext
from brandsite.features.animation.types import DeviceProfile
from brandsite.features.brands.service import BrandResolver
from brandsite.features.leads.service import LeadCaptureService
from brandsite.features.leads.store import LeadStore, build_lead_store
from brandsite.features.page_runtime.service import PageViewRunner
from brandsite.features.storage.service import BrowserStorage
from brandsite.features.telemetry.service import FanoutSink, build_sink


@dataclass(slots=True)
class SiteContext:
    """
    Explicitly constructed dependencies for one process. Passed down instead
    of module-level singletons so tests can build isolated contexts.
    """

    cfg: SiteConfig
    sink: FanoutSink
    leads: LeadCaptureService
    env_vars: dict[str, str] = field(default_factory=dict)
    seed: int | None = None

    def brand_resolver(self, page: PageContext | None = None) -> BrandResolver:
        return BrandResolver(settings=self.cfg.brand, env=self.env_vars, page=page)

    def page_view(
        self,
        page: PageContext,
        *,
        device: DeviceProfile | None = None,
        storage: BrowserStorage | None = None,
        **kw,
    ) -> PageViewRunner:
        return PageViewRunner(
            cfg=self.cfg,
            sink=self.sink,
            page=page,
            device=device,
            storage=storage,
            rng=RNG(self.seed),
            env_vars=self.env_vars,
            **kw,
        )

    def close(self) -> None:
        self.sink.close()


def bootstrap_site(
    cfg: SiteConfig,
    *,
    env_vars: Mapping[str, str] | None = None,
    lead_store: LeadStore | None = None,
    seed: int | None = None,
) -> SiteContext:
    logger = get_logger("brandsite", cfg.logging.level)

    sink = build_sink(cfg)
    leads = LeadCaptureService(lead_store or build_lead_store(cfg.leads))

    logger.info(
        "site context ready",
        extra={
            "feature": "bootstrap",
            "properties": {
                "sinks": [type(s).__name__ for s in sink.sinks],
                "leads_store": type(leads.store).__name__,
            },
        },
    )
    return SiteContext(
        cfg=cfg,
        sink=sink,
        leads=leads,
        env_vars=dict(os.environ if env_vars is None else env_vars),
        seed=seed,
    )
