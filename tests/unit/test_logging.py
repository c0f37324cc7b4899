"""Unit tests for structured logging."""

from __future__ import annotations

import io
import json
import logging

from workflow_resolver.logging import configure_logging


def test_json_records_carry_extra_fields() -> None:
    stream = io.StringIO()
    configure_logging("info", stream=stream)

    logging.getLogger("workflow_resolver.test").info("Session started", extra={"session_id": "abc"})

    record = json.loads(stream.getvalue().splitlines()[-1])
    assert record["level"] == "INFO"
    assert record["message"] == "Session started"
    assert record["extra"] == {"session_id": "abc"}


def test_reconfiguring_does_not_duplicate_handlers() -> None:
    configure_logging("WARNING", stream=io.StringIO())
    configure_logging("WARNING", stream=io.StringIO())

    assert len(logging.getLogger().handlers) == 1
