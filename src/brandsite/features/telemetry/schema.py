from __future__ import annotations

EVENTS_TABLE_NAME = "telemetry_events"

# row tuples produced by DuckDBSink follow this order
INSERT_COLUMNS = (
    "event_id",
    "ts_utc",
    "event_name",
    "category",
    "page",
    "value_str",
    "properties_json",
)

EVENTS_DDL = f"""
CREATE TABLE IF NOT EXISTS {EVENTS_TABLE_NAME} (
    event_id TEXT NOT NULL,
    ts_utc TIMESTAMP NOT NULL,
    event_name TEXT NOT NULL,
    category TEXT,
    page TEXT,
    value_str TEXT,
    properties_json TEXT
);
"""

EVENTS_INDEXES = (
    f"CREATE INDEX IF NOT EXISTS idx_telemetry_event_name ON {EVENTS_TABLE_NAME}(event_name);",
    f"CREATE INDEX IF NOT EXISTS idx_telemetry_ts_utc ON {EVENTS_TABLE_NAME}(ts_utc);",
)


def create_schema(conn) -> None:
    """Idempotent; runs on every open."""
    conn.execute(EVENTS_DDL)
    for ddl in EVENTS_INDEXES:
        conn.execute(ddl)
