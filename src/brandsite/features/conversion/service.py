from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from brandsite.core.logging import get_logger
from brandsite.core.types import PageContext, iso_utc
from brandsite.features.telemetry.service import TelemetrySink

# Qualitative value attached to known marketing actions
VALUE_TAGS: dict[str, str] = {
    "cta_click": "high_intent",
    "pricing_view": "consideration",
    "contact_form_submit": "lead_generation",
    "demo_request": "qualified_lead",
}

LEAD_SCORE_WEIGHTS: dict[str, int] = {
    "page_view": 1,
    "pricing_view": 15,
    "case_study_view": 10,
    "cta_click": 25,
    "demo_request": 50,
    "contact_form_submit": 75,
    "pricing_inquiry": 40,
    "enterprise_interest": 60,
}

QUALIFIED_THRESHOLD = 50
INTERESTED_THRESHOLD = 25


@dataclass(frozen=True, slots=True)
class ConversionEvent:
    event_name: str
    category: str
    timestamp: str
    page: str
    user_agent: str
    value: str | None = None

    def as_properties(self) -> dict[str, Any]:
        props = asdict(self)
        if self.value is None:
            del props["value"]
        return props


@dataclass(frozen=True, slots=True)
class LeadScore:
    score: int
    qualification: str  # "visitor" | "interested" | "qualified"
    timestamp: str


@dataclass(frozen=True, slots=True)
class NavigationTiming:
    """
    Subset of PerformanceNavigationTiming, all in milliseconds.
    """

    navigation_start: float
    request_start: float
    response_start: float
    dom_content_loaded_event_start: float
    dom_content_loaded_event_end: float
    load_event_start: float
    load_event_end: float


def build_conversion_event(
    action: str,
    category: str = "marketing",
    *,
    page: PageContext | None = None,
    now_utc: datetime | None = None,
) -> ConversionEvent:
    return ConversionEvent(
        event_name=action,
        category=category,
        timestamp=iso_utc(now_utc),
        page=page.path if page is not None else "/",
        user_agent=page.user_agent if page is not None else "",
        value=VALUE_TAGS.get(action),
    )


def qualify(score: int) -> str:
    if score >= QUALIFIED_THRESHOLD:
        return "qualified"
    if score >= INTERESTED_THRESHOLD:
        return "interested"
    return "visitor"


def compute_lead_score(actions: Iterable[str], *, now_utc: datetime | None = None) -> LeadScore:
    score = sum(LEAD_SCORE_WEIGHTS.get(a, 0) for a in actions)
    return LeadScore(score=score, qualification=qualify(score), timestamp=iso_utc(now_utc))


def performance_metrics(timing: NavigationTiming, *, now_ms: float) -> dict[str, float]:
    return {
        "load_time": timing.load_event_end - timing.load_event_start,
        "dom_content_loaded": (
            timing.dom_content_loaded_event_end - timing.dom_content_loaded_event_start
        ),
        "time_to_first_byte": timing.response_start - timing.request_start,
        "page_load_time": now_ms - timing.navigation_start,
    }


class ConversionReporter:
    """
    Fire-and-forget reporting of conversion events to a telemetry sink.
    track() never raises and never blocks on the sink's outcome.
    """

    def __init__(self, sink: TelemetrySink, page: PageContext | None = None) -> None:
        self.sink = sink
        self.page = page
        self._logger = get_logger(__name__)

    def track(
        self,
        action: str,
        category: str = "marketing",
        *,
        now_utc: datetime | None = None,
    ) -> ConversionEvent:
        event = build_conversion_event(action, category, page=self.page, now_utc=now_utc)
        try:
            self.sink.send(event.event_name, event.as_properties())
        except Exception:
            self._logger.exception(
                "telemetry sink rejected conversion event",
                extra={"feature": "conversion", "event_type": action},
            )
        return event

    def track_performance(
        self,
        timing: NavigationTiming,
        *,
        now_ms: float,
        now_utc: datetime | None = None,
    ) -> dict[str, float]:
        metrics = performance_metrics(timing, now_ms=now_ms)
        self._logger.info(
            "performance metrics",
            extra={"feature": "conversion", "properties": metrics},
        )
        self.track("page_performance", "technical", now_utc=now_utc)
        return metrics
