from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import IO, Any

# context fields lifted from `extra=` onto the JSON line
EXTRA_KEYS = ("brand", "feature", "event_type", "session_id", "form_type", "properties")


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line. The timestamp is the record's creation time,
    not the time the handler got around to formatting it.
    """

    def __init__(self, keys: Iterable[str] = EXTRA_KEYS) -> None:
        super().__init__()
        self.keys = tuple(keys)

    def format(self, record: logging.LogRecord) -> str:
        doc: dict[str, Any] = {
            "ts_utc": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        doc.update({k: getattr(record, k) for k in self.keys if hasattr(record, k)})
        if record.exc_info:
            doc["exc"] = self.formatException(record.exc_info)
        return json.dumps(doc, separators=(",", ":"), ensure_ascii=True, default=str)


def get_logger(name: str, level: str = "INFO", stream: IO[str] | None = None) -> logging.Logger:
    """
    Writes to stderr unless a stream is given; stdout belongs to the CLI.
    A logger is configured once and later calls return it unchanged.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(level.upper())
    logger.propagate = False
    return logger
