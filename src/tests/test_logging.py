from __future__ import annotations

import io
import json

from brandsite.core.logging import get_logger


def test_json_lines_carry_context_fields() -> None:
    buf = io.StringIO()
    logger = get_logger("brandsite.test.json_lines", "DEBUG", stream=buf)

    logger.info("lead stored", extra={"feature": "leads", "form_type": "demo", "unrelated": 1})
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        logger.exception("submit failed", extra={"feature": "leads"})

    first, second = (json.loads(line) for line in buf.getvalue().splitlines())
    assert first["msg"] == "lead stored"
    assert first["form_type"] == "demo"
    assert "unrelated" not in first
    assert second["level"] == "ERROR"
    assert "RuntimeError: boom" in second["exc"]


def test_logger_is_configured_once() -> None:
    a = get_logger("brandsite.test.once", "INFO", stream=io.StringIO())
    b = get_logger("brandsite.test.once", "DEBUG")
    assert a is b
    assert len(b.handlers) == 1
    assert b.level == 20
