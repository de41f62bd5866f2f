from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from brandsite.core.config import BehaviorConfig
from brandsite.core.logging import get_logger
from brandsite.core.types import utc_now

# Selector sets: "a, button, .cta-button, .pricing-card" and the CTA subset
INTERACTIVE_TAGS = frozenset({"a", "button"})
INTERACTIVE_CLASSES = frozenset({"cta-button", "pricing-card"})
CTA_CLASSES = frozenset({"cta-button", "primary-cta", "secondary-cta"})

_logger = get_logger(__name__)


class ConversionTracker(Protocol):
    def track(
        self, action: str, category: str = "marketing", *, now_utc: datetime | None = None
    ) -> object: ...


@dataclass(frozen=True, slots=True)
class ClickTarget:
    tag: str
    text: str = ""
    classes: frozenset[str] = frozenset()

    @classmethod
    def of(cls, tag: str, text: str = "", class_name: str = "") -> ClickTarget:
        return cls(tag=tag, text=text, classes=frozenset(class_name.split()))

    def is_interactive(self) -> bool:
        return self.tag.lower() in INTERACTIVE_TAGS or bool(self.classes & INTERACTIVE_CLASSES)

    def is_cta(self) -> bool:
        return bool(self.classes & CTA_CLASSES)


@dataclass(frozen=True, slots=True)
class ClickRecord:
    element: str
    text: str
    timestamp: datetime


@dataclass(slots=True)
class BehaviorSnapshot:
    started_at: datetime
    max_clicks: int
    scroll_depth: int = 0
    clicks: deque[ClickRecord] = field(init=False)
    dropped_clicks: int = 0

    def __post_init__(self) -> None:
        self.clicks = deque(maxlen=self.max_clicks)


def scroll_percent(scroll_y: float, scroll_height: float, viewport_height: float) -> int:
    scrollable = scroll_height - viewport_height
    if scrollable <= 0:
        return 100
    pct = round(scroll_y / scrollable * 100)
    return max(0, min(100, pct))


class BehaviorTracker:
    """
    Passive per-page-view tracking: max scroll depth plus a bounded click log.
    Oldest clicks are evicted once max_clicks is reached.
    """

    def __init__(
        self,
        reporter: ConversionTracker | None = None,
        cfg: BehaviorConfig | None = None,
    ) -> None:
        self.cfg = cfg or BehaviorConfig()
        if self.cfg.max_clicks <= 0:
            raise ValueError("behavior.max_clicks must be positive")
        self.reporter = reporter
        self.snapshot: BehaviorSnapshot | None = None

    def start(self, now_utc: datetime | None = None) -> BehaviorSnapshot:
        self.snapshot = BehaviorSnapshot(
            started_at=now_utc or utc_now(),
            max_clicks=self.cfg.max_clicks,
        )
        return self.snapshot

    def _live(self) -> BehaviorSnapshot:
        if self.snapshot is None:
            raise RuntimeError("BehaviorTracker not started. Call start() first.")
        return self.snapshot

    def on_scroll(self, scroll_y: float, scroll_height: float, viewport_height: float) -> int:
        snap = self._live()
        snap.scroll_depth = max(
            snap.scroll_depth, scroll_percent(scroll_y, scroll_height, viewport_height)
        )
        return snap.scroll_depth

    def on_click(self, target: ClickTarget, now_utc: datetime | None = None) -> bool:
        """
        Returns True if the click was recorded.
        """
        snap = self._live()
        if not target.is_interactive():
            return False
        now_utc = now_utc or utc_now()

        if len(snap.clicks) == snap.max_clicks:
            snap.dropped_clicks += 1
        snap.clicks.append(
            ClickRecord(
                element=target.tag.upper(),
                text=target.text.strip()[: self.cfg.text_snippet_length],
                timestamp=now_utc,
            )
        )

        if target.is_cta() and self.reporter is not None:
            self.reporter.track("cta_click", "engagement", now_utc=now_utc)
        return True

    def session_summary(self, now_utc: datetime | None = None) -> dict[str, float | int]:
        snap = self._live()
        now_utc = now_utc or utc_now()
        summary = {
            "time_on_page": max(0.0, (now_utc - snap.started_at).total_seconds()),
            "scroll_depth": snap.scroll_depth,
            "interactions": len(snap.clicks) + snap.dropped_clicks,
        }
        _logger.info(
            "session summary",
            extra={"feature": "behavior", "properties": summary},
        )
        return summary
