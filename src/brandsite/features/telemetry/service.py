from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any, Protocol

import requests

from brandsite.core.config import AnalyticsConfig, SiteConfig
from brandsite.core.ids import IdsService, new_client_id
from brandsite.core.logging import get_logger
from brandsite.core.types import utc_now

from .duckdb_adapter import DuckDBAdapter


class TelemetrySink(Protocol):
    """
    Anything that accepts (event name, property bag). Must tolerate being a
    no-op and must never raise into the caller.
    """

    def send(self, event_name: str, properties: Mapping[str, Any]) -> None: ...


class LoggingSink:
    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or get_logger("brandsite.telemetry")

    def send(self, event_name: str, properties: Mapping[str, Any]) -> None:
        self._logger.info(
            "conversion tracked",
            extra={
                "feature": "telemetry",
                "event_type": event_name,
                "properties": dict(properties),
            },
        )


class GoogleAnalyticsSink:
    """
    GA4 Measurement Protocol. Without measurement_id/api_secret every send is
    a no-op. Transport errors are logged and dropped.
    """

    def __init__(
        self,
        cfg: AnalyticsConfig,
        *,
        client_id: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.cfg = cfg
        self.client_id = client_id or new_client_id()
        self._session = session or requests.Session()
        self._logger = get_logger(__name__)

    @property
    def enabled(self) -> bool:
        return self.cfg.remote_enabled

    def send(self, event_name: str, properties: Mapping[str, Any]) -> None:
        if not self.enabled:
            return

        body = {
            "client_id": self.client_id,
            "events": [{"name": event_name, "params": _ga_params(properties)}],
        }
        try:
            resp = self._session.post(
                self.cfg.endpoint,
                params={
                    "measurement_id": self.cfg.measurement_id,
                    "api_secret": self.cfg.api_secret,
                },
                json=body,
                timeout=self.cfg.timeout_seconds,
            )
        except requests.RequestException as exc:
            self._logger.warning(
                f"analytics request failed: {exc}",
                extra={"feature": "telemetry", "event_type": event_name},
            )
            return

        if not 200 <= resp.status_code < 300:
            self._logger.warning(
                f"analytics endpoint returned {resp.status_code}",
                extra={"feature": "telemetry", "event_type": event_name},
            )


class DuckDBSink:
    """
    Buffered event sink + flush policy.
    - Hot: buffer in memory
    - Cold: DuckDB
    """

    def __init__(
        self,
        *,
        adapter: DuckDBAdapter,
        every_n_events: int,
        ids: IdsService | None = None,
    ) -> None:
        self.adapter = adapter
        self.every_n_events = int(every_n_events)
        self._ids = ids or IdsService(scope=new_client_id()[:12])

        self._buf: list[tuple] = []
        self._logger = get_logger(__name__)
        self._is_open = False

    def open(self) -> None:
        if self._is_open:
            return
        self.adapter.open()
        self._is_open = True

    def send(self, event_name: str, properties: Mapping[str, Any]) -> None:
        if not self._is_open:
            raise RuntimeError("DuckDBSink not open. Call open() first.")

        self._buf.append(self._to_row(event_name, properties))

        if self.every_n_events > 0 and len(self._buf) >= self.every_n_events:
            self.flush(reason="count")

    def flush(self, *, reason: str) -> None:
        if not self._buf:
            return

        rows = list(self._buf)
        self._buf.clear()
        result = self.adapter.write_events(rows)

        self._logger.info(
            "flush",
            extra={
                "feature": "telemetry",
                "properties": {
                    "reason": reason,
                    "duckdb_path": self.adapter.path,
                    "num_events": result.num_events,
                    "duration_ms": result.duration_ms,
                },
            },
        )

    def close(self) -> None:
        if not self._is_open:
            return
        self.flush(reason="shutdown")
        self.adapter.close()
        self._is_open = False

    def _to_row(self, event_name: str, properties: Mapping[str, Any]) -> tuple:
        props = dict(properties)
        return (
            self._ids.next_id("evt"),
            _parse_ts(props.get("timestamp")),
            event_name,
            props.get("category"),
            props.get("page"),
            props.get("value"),
            json.dumps(props, sort_keys=True, separators=(",", ":"), default=str),
        )


class FanoutSink:
    """
    Forwards to every sink. A failing sink is logged and skipped; the caller
    never sees the exception.
    """

    def __init__(self, sinks: Iterable[TelemetrySink]) -> None:
        self.sinks = list(sinks)
        self._logger = get_logger(__name__)

    def send(self, event_name: str, properties: Mapping[str, Any]) -> None:
        for sink in self.sinks:
            try:
                sink.send(event_name, properties)
            except Exception:
                self._logger.exception(
                    f"telemetry sink {type(sink).__name__} failed",
                    extra={"feature": "telemetry", "event_type": event_name},
                )

    def close(self) -> None:
        for sink in self.sinks:
            close = getattr(sink, "close", None)
            if close is not None:
                close()


def build_sink(cfg: SiteConfig, *, client_id: str | None = None) -> FanoutSink:
    sinks: list[TelemetrySink] = [LoggingSink(get_logger("brandsite.telemetry", cfg.logging.level))]

    if cfg.analytics.remote_enabled:
        sinks.append(GoogleAnalyticsSink(cfg.analytics, client_id=client_id))

    if cfg.storage.duckdb_path:
        duck = DuckDBSink(
            adapter=DuckDBAdapter(cfg.storage.duckdb_path, clean_slate=cfg.storage.clean_slate),
            every_n_events=cfg.storage.flush.every_n_events,
        )
        duck.open()
        sinks.append(duck)

    return FanoutSink(sinks)


def _ga_params(properties: Mapping[str, Any]) -> dict[str, Any]:
    # GA4 params must be scalars
    out: dict[str, Any] = {}
    for k, v in properties.items():
        if v is None:
            continue
        out[k] = v if isinstance(v, (str, int, float, bool)) else json.dumps(v, default=str)
    return out


def _parse_ts(value: Any) -> datetime:
    """
    ts_utc is a naive TIMESTAMP holding UTC wall time. Aware values are
    converted here; DuckDB would otherwise shift them to the host zone.
    Naive values are taken as UTC already.
    """
    ts: datetime | None = None
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str):
        try:
            ts = datetime.fromisoformat(value)
        except ValueError:
            ts = None
    if ts is None:
        ts = utc_now()
    if ts.tzinfo is not None:
        ts = ts.astimezone(UTC).replace(tzinfo=None)
    return ts
