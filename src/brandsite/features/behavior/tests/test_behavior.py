from __future__ import annotations

import random
from datetime import UTC, datetime, timedelta

import pytest

from brandsite.core.config import BehaviorConfig
from brandsite.features.behavior.service import BehaviorTracker, ClickTarget, scroll_percent

T0 = datetime(2026, 1, 1, tzinfo=UTC)


class RecordingReporter:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    def track(self, action: str, category: str = "marketing", *, now_utc=None) -> None:
        self.calls.append((action, category))


def test_scroll_depth_is_monotonic_under_random_events() -> None:
    r = random.Random(99)
    tracker = BehaviorTracker()
    tracker.start(T0)

    previous = 0
    for _ in range(500):
        depth = tracker.on_scroll(
            scroll_y=r.uniform(-100, 6000), scroll_height=5000, viewport_height=800
        )
        assert depth >= previous
        assert 0 <= depth <= 100
        previous = depth


def test_smaller_later_scroll_does_not_lower_depth() -> None:
    tracker = BehaviorTracker()
    tracker.start(T0)

    assert tracker.on_scroll(2100, 5000, 800) == 50
    assert tracker.on_scroll(420, 5000, 800) == 50
    assert tracker.snapshot is not None
    assert tracker.snapshot.scroll_depth == 50


def test_scroll_percent_edges() -> None:
    assert scroll_percent(0, 800, 800) == 100
    assert scroll_percent(0, 2000, 1000) == 0
    assert scroll_percent(5000, 2000, 1000) == 100


def test_click_log_records_interactive_targets_only() -> None:
    reporter = RecordingReporter()
    tracker = BehaviorTracker(reporter)
    tracker.start(T0)

    assert tracker.on_click(ClickTarget.of("a", "  Pricing  "), T0) is True
    assert tracker.on_click(ClickTarget.of("div", "card", "pricing-card"), T0) is True
    assert tracker.on_click(ClickTarget.of("p", "just text"), T0) is False

    snap = tracker.snapshot
    assert snap is not None
    assert [c.element for c in snap.clicks] == ["A", "DIV"]
    assert snap.clicks[0].text == "Pricing"
    assert reporter.calls == []


def test_text_snippet_is_truncated() -> None:
    tracker = BehaviorTracker()
    tracker.start(T0)
    tracker.on_click(ClickTarget.of("button", "x" * 80), T0)
    assert tracker.snapshot is not None
    assert len(tracker.snapshot.clicks[0].text) == 50


def test_cta_click_raises_conversion() -> None:
    reporter = RecordingReporter()
    tracker = BehaviorTracker(reporter)
    tracker.start(T0)

    tracker.on_click(ClickTarget.of("button", "Start Free Assessment", "btn primary-cta"), T0)
    tracker.on_click(ClickTarget.of("a", "Book", "cta-button"), T0)

    assert reporter.calls == [("cta_click", "engagement"), ("cta_click", "engagement")]


def test_click_log_is_bounded() -> None:
    tracker = BehaviorTracker(cfg=BehaviorConfig(max_clicks=3))
    tracker.start(T0)

    for i in range(10):
        tracker.on_click(ClickTarget.of("button", f"b{i}"), T0 + timedelta(seconds=i))

    snap = tracker.snapshot
    assert snap is not None
    assert [c.text for c in snap.clicks] == ["b7", "b8", "b9"]
    assert snap.dropped_clicks == 7
    assert tracker.session_summary(T0 + timedelta(seconds=30))["interactions"] == 10


def test_session_summary_duration() -> None:
    tracker = BehaviorTracker()
    tracker.start(T0)
    tracker.on_scroll(4200, 5000, 800)

    summary = tracker.session_summary(T0 + timedelta(seconds=95))

    assert summary == {"time_on_page": 95.0, "scroll_depth": 100, "interactions": 0}


def test_requires_start_and_positive_cap() -> None:
    with pytest.raises(RuntimeError):
        BehaviorTracker().on_scroll(0, 100, 50)
    with pytest.raises(ValueError):
        BehaviorTracker(cfg=BehaviorConfig(max_clicks=0))
