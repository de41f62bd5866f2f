from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from brandsite.features.animation.types import AnimationDecision, AnimationState
from brandsite.features.attribution.service import AttributionRecord
from brandsite.features.behavior.service import ClickTarget
from brandsite.features.conversion.service import NavigationTiming


@dataclass(frozen=True, slots=True)
class ScrollAt:
    at_s: float
    scroll_y: float
    scroll_height: float = 5000.0
    viewport_height: float = 800.0


@dataclass(frozen=True, slots=True)
class ClickAt:
    at_s: float
    target: ClickTarget


@dataclass(frozen=True, slots=True)
class PageViewScript:
    """
    Timed visitor interactions for one page view. Anything scheduled at or
    after unload_at never fires.
    """

    interactions: tuple[ScrollAt | ClickAt, ...] = ()
    unload_at: float = 30.0
    timing: NavigationTiming | None = None
    # window 'load' + 1s, when performance is reported
    performance_at: float = 1.0


@dataclass(frozen=True, slots=True)
class PageViewResult:
    brand: str
    attribution: AttributionRecord
    variants: dict[str, str]
    decision: AnimationDecision
    # None if the page unloaded before the animation assets settled
    animation_state: AnimationState | None
    summary: dict[str, Any] = field(default_factory=dict)
