from __future__ import annotations

import os
import time
from collections.abc import Sequence
from dataclasses import dataclass

import duckdb

from .schema import EVENTS_TABLE_NAME, INSERT_COLUMNS, create_schema


@dataclass(frozen=True)
class DuckDBWriteResult:
    num_events: int
    duration_ms: float


@dataclass(frozen=True)
class EventCount:
    event_name: str
    value: str | None
    count: int


class DuckDBAdapter:
    """
    Local telemetry store. Owns the connection and schema; usable as a
    context manager for one-off reads.
    """

    def __init__(self, path: str, *, clean_slate: bool = False) -> None:
        self.path = path
        self.clean_slate = clean_slate
        self._conn: duckdb.DuckDBPyConnection | None = None

    def __enter__(self) -> DuckDBAdapter:
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def open(self) -> None:
        if self.clean_slate and os.path.exists(self.path):
            os.remove(self.path)
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)

        self._conn = duckdb.connect(self.path)
        create_schema(self._conn)

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            raise RuntimeError(f"telemetry store {self.path!r} is not open")
        return self._conn

    def close(self) -> None:
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None

    def write_events(self, rows: Sequence[tuple]) -> DuckDBWriteResult:
        if not rows:
            return DuckDBWriteResult(num_events=0, duration_ms=0.0)

        cols = ", ".join(INSERT_COLUMNS)
        marks = ", ".join("?" for _ in INSERT_COLUMNS)
        started = time.perf_counter()
        self.conn.executemany(f"INSERT INTO {EVENTS_TABLE_NAME} ({cols}) VALUES ({marks})", rows)
        return DuckDBWriteResult(
            num_events=len(rows),
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )

    def count_events(self, event_name: str | None = None) -> int:
        sql = f"SELECT COUNT(*) FROM {EVENTS_TABLE_NAME}"
        params: list[str] = []
        if event_name is not None:
            sql += " WHERE event_name = ?"
            params.append(event_name)
        row = self.conn.execute(sql, params).fetchone()
        return int(row[0]) if row else 0

    def event_counts(self) -> list[EventCount]:
        """
        Counts per (event_name, value tag), most frequent first.
        """
        rows = self.conn.execute(
            f"""
            SELECT event_name, value_str, COUNT(*) AS n
            FROM {EVENTS_TABLE_NAME}
            GROUP BY event_name, value_str
            ORDER BY n DESC, event_name, value_str NULLS FIRST
            """
        ).fetchall()
        return [EventCount(event_name=r[0], value=r[1], count=int(r[2])) for r in rows]
