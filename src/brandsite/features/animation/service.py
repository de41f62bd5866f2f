from __future__ import annotations

import simpy

from brandsite.core.config import AnimationConfig
from brandsite.core.logging import get_logger
from brandsite.core.types import PageContext
from brandsite.features.storage.service import KeyValueStore

from .loader import AssetLoader
from .types import (
    AnimationAssets,
    AnimationDecision,
    AnimationLibrary,
    AnimationState,
    AnimeAnimations,
    DeviceProfile,
    LoadSucceeded,
    VanillaAnimations,
)

OVERRIDE_KEY = "animationLibrary"
PERFORMANCE_MODES = ("auto", "high", "low")
HIGH_PERFORMANCE_SCORE = 5

_logger = get_logger(__name__)


def library_factory(name: str, cfg: AnimationConfig | None = None) -> AnimationLibrary:
    """
    Strategy factory. Unknown names resolve to the lightweight implementation.
    Asset URLs can be overridden per library in config.
    """
    cfg = cfg or AnimationConfig()
    key = (name or "").strip().lower()

    if key == "anime":
        override = cfg.assets.get("anime")
        if override is None:
            return AnimeAnimations()
        return AnimeAnimations(
            assets=AnimationAssets(
                script_url=override.script_url,
                stylesheet_url=override.stylesheet_url,
                library_url=override.library_url or AnimeAnimations().assets.library_url,
            )
        )

    override = cfg.assets.get("vanilla")
    if override is None:
        return VanillaAnimations()
    return VanillaAnimations(
        assets=AnimationAssets(
            script_url=override.script_url,
            stylesheet_url=override.stylesheet_url,
            library_url=override.library_url,
        )
    )


def detect_library(
    page: PageContext,
    local_storage: KeyValueStore | None = None,
    cfg: AnimationConfig | None = None,
) -> tuple[str, str]:
    """
    Returns (library name, source). Priority: query param, stored override,
    hostname pattern, configured default.
    """
    cfg = cfg or AnimationConfig()
    query = page.query

    if "animation" in query:
        return query["animation"].strip().lower(), "query"
    if query.get("anime") == "true":
        return "anime", "query"
    if query.get("vanilla") == "true":
        return "vanilla", "query"

    if local_storage is not None:
        stored = local_storage.get_item(OVERRIDE_KEY)
        if stored:
            return stored.strip().lower(), "storage"

    hostname = page.hostname
    for pattern, library in cfg.hostname_patterns.items():
        if pattern in hostname:
            return library, "hostname"

    return cfg.default_library, "default"


def detect_performance(device: DeviceProfile, mode: str = "auto") -> str:
    mode = (mode or "auto").strip().lower()
    if mode not in PERFORMANCE_MODES:
        raise ValueError(f"Unsupported animation.performance_mode: {mode!r}")
    if mode != "auto":
        return mode

    score = 0
    score += 2 if device.device_memory >= 4 else 1
    score += 2 if device.hardware_concurrency >= 4 else 1
    if device.effective_type is not None:
        score += 2 if device.effective_type == "4g" else 1

    return "high" if score >= HIGH_PERFORMANCE_SCORE else "low"


def set_test_variant(local_storage: KeyValueStore, library: str) -> None:
    local_storage.set_item(OVERRIDE_KEY, library)


def clear_test_variant(local_storage: KeyValueStore) -> None:
    local_storage.remove_item(OVERRIDE_KEY)


class AnimationSelector:
    """
    One-shot, per page view choice between vanilla and anime.js animations.

      requested --(reduced motion)--> DISABLED
      requested=anime --(low performance)--> VANILLA
      ADVANCED --(asset load error)--> VANILLA   (final, no retry)
    """

    def __init__(self, cfg: AnimationConfig | None = None) -> None:
        self.cfg = cfg or AnimationConfig()
        if self.cfg.performance_mode not in PERFORMANCE_MODES:
            raise ValueError(
                f"Unsupported animation.performance_mode: {self.cfg.performance_mode!r}"
            )

    def decide(
        self,
        page: PageContext,
        device: DeviceProfile,
        local_storage: KeyValueStore | None = None,
    ) -> AnimationDecision:
        requested, source = detect_library(page, local_storage, self.cfg)
        performance = detect_performance(device, self.cfg.performance_mode)

        if self.cfg.respect_motion_preference and device.prefers_reduced_motion:
            decision = AnimationDecision(
                state=AnimationState.DISABLED,
                requested=requested,
                performance=performance,
                reason="reduced_motion",
            )
        else:
            library = library_factory(requested, self.cfg)
            if library.state is AnimationState.ADVANCED and performance == "low":
                decision = AnimationDecision(
                    state=AnimationState.VANILLA,
                    requested=requested,
                    performance=performance,
                    reason="low_performance",
                )
            else:
                decision = AnimationDecision(
                    state=library.state,
                    requested=requested,
                    performance=performance,
                    reason=source,
                )

        if self.cfg.debug or page.hostname == "localhost":
            _logger.info(
                "animation configuration",
                extra={
                    "feature": "animation",
                    "properties": {
                        "state": decision.state.value,
                        "requested": decision.requested,
                        "performance": decision.performance,
                        "reason": decision.reason,
                    },
                },
            )
        return decision

    def load(self, env: simpy.Environment, decision: AnimationDecision, loader: AssetLoader):
        """
        SimPy process body. Returns the final AnimationState.
        """
        if decision.state is AnimationState.DISABLED:
            yield env.timeout(0)
            _logger.info(
                "animations disabled: user prefers reduced motion",
                extra={"feature": "animation"},
            )
            return AnimationState.DISABLED

        if decision.state is AnimationState.ADVANCED:
            anime = library_factory("anime", self.cfg)
            result = yield loader.load(anime.name, anime.assets)
            if isinstance(result, LoadSucceeded):
                _logger.info("anime.js animations loaded", extra={"feature": "animation"})
                return AnimationState.ADVANCED
            _logger.warning(
                f"{result.error}, falling back to vanilla",
                extra={"feature": "animation"},
            )

        vanilla = library_factory("vanilla", self.cfg)
        result = yield loader.load(vanilla.name, vanilla.assets)
        if isinstance(result, LoadSucceeded):
            _logger.info("vanilla animations loaded", extra={"feature": "animation"})
            return AnimationState.VANILLA

        _logger.error(
            f"{result.error}, animations unavailable",
            extra={"feature": "animation"},
        )
        return AnimationState.DISABLED

    def start(
        self, env: simpy.Environment, decision: AnimationDecision, loader: AssetLoader
    ) -> simpy.events.Process:
        return env.process(self.load(env, decision, loader))
