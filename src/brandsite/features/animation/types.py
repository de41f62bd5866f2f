from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

ANIME_CDN_URL = "https://cdn.jsdelivr.net/npm/animejs@3.2.2/lib/anime.min.js"


class AnimationState(str, Enum):
    DISABLED = "animations-disabled"
    VANILLA = "vanilla"
    ADVANCED = "anime"


@dataclass(frozen=True, slots=True)
class AnimationAssets:
    script_url: str
    stylesheet_url: str
    # Third-party runtime that must load before script_url
    library_url: str | None = None

    def script_urls(self) -> tuple[str, ...]:
        head = (self.library_url,) if self.library_url else ()
        return (*head, self.script_url)


class AnimationLibrary(Protocol):
    name: str
    state: AnimationState
    assets: AnimationAssets


@dataclass(frozen=True, slots=True)
class VanillaAnimations:
    """
    Lightweight implementation: IntersectionObserver + CSS transitions.
    """

    assets: AnimationAssets = AnimationAssets(
        script_url="./js/vanilla/animations.js",
        stylesheet_url="./css/animations-vanilla.css",
    )
    name: str = "vanilla"
    state: AnimationState = AnimationState.VANILLA


@dataclass(frozen=True, slots=True)
class AnimeAnimations:
    """
    Enhanced implementation backed by anime.js from a CDN.
    """

    assets: AnimationAssets = AnimationAssets(
        script_url="./js/anime/animations.js",
        stylesheet_url="./css/animations-anime.css",
        library_url=ANIME_CDN_URL,
    )
    name: str = "anime"
    state: AnimationState = AnimationState.ADVANCED


@dataclass(frozen=True, slots=True)
class DeviceProfile:
    """
    navigator.deviceMemory / hardwareConcurrency / connection.effectiveType and
    the prefers-reduced-motion media query. Browser defaults when unknown.
    """

    device_memory: float = 4
    hardware_concurrency: int = 4
    effective_type: str | None = None
    prefers_reduced_motion: bool = False


@dataclass(frozen=True, slots=True)
class AnimationDecision:
    state: AnimationState
    requested: str
    performance: str
    reason: str


@dataclass(frozen=True, slots=True)
class LoadSucceeded:
    library: str
    # stylesheets that failed; styling degrades but the library still runs
    missing_stylesheets: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class LoadFailed:
    library: str
    error: str


LoadResult = LoadSucceeded | LoadFailed
