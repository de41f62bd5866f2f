from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

import simpy

from brandsite.core.logging import get_logger

from .types import AnimationAssets, LoadFailed, LoadResult, LoadSucceeded

_logger = get_logger(__name__)


class AssetLoader(Protocol):
    """
    Asynchronous script/stylesheet load. The returned process resolves to a
    LoadResult; it never fails the process itself.
    """

    def load(self, library: str, assets: AnimationAssets) -> simpy.events.Process: ...


@dataclass(slots=True)
class SimulatedAssetLoader:
    """
    Loads each asset after `latency_s` of simulated time. URLs listed in
    `failing_urls` error out, as an unreachable CDN would.
    """

    env: simpy.Environment
    latency_s: float = 0.05
    failing_urls: frozenset[str] = field(default_factory=frozenset)
    requested: list[str] = field(default_factory=list)

    @classmethod
    def failing(cls, env: simpy.Environment, urls: Iterable[str], **kw) -> SimulatedAssetLoader:
        return cls(env=env, failing_urls=frozenset(urls), **kw)

    def load(self, library: str, assets: AnimationAssets) -> simpy.events.Process:
        return self.env.process(self._load(library, assets))

    def _load(self, library: str, assets: AnimationAssets):
        # runtime, then site script: the first failure aborts the library
        for url in assets.script_urls():
            if not (yield from self._fetch(url)):
                result: LoadResult = LoadFailed(library=library, error=f"failed to load {url}")
                return result

        missing: tuple[str, ...] = ()
        if not (yield from self._fetch(assets.stylesheet_url)):
            _logger.warning(
                f"failed to load {assets.stylesheet_url}, continuing unstyled",
                extra={"feature": "animation"},
            )
            missing = (assets.stylesheet_url,)
        return LoadSucceeded(library=library, missing_stylesheets=missing)

    def _fetch(self, url: str):
        self.requested.append(url)
        yield self.env.timeout(self.latency_s)
        return url not in self.failing_urls
