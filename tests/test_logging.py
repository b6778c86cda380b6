from __future__ import annotations

import io
import json
import logging

from overthinkr.utils.logging import (
    clear_log_context,
    set_log_context,
    setup_logging,
)


def test_json_formatter_context_and_extra_fields() -> None:
    log_stream = io.StringIO()
    logger = setup_logging(level=logging.INFO)
    logger.handlers[0].stream = log_stream
    child = logging.getLogger("overthinkr.pipeline.orchestrator")

    try:
        set_log_context(stage="llm", input_source="text")
        child.info("first", extra={"duration_ms": 12.5})
        child.warning("second", extra={"stage": "validate", "error_code": "NOT_JSON"})
        clear_log_context(["stage"])
        child.info("third")
    finally:
        clear_log_context()

    lines = [json.loads(line) for line in log_stream.getvalue().splitlines()]

    assert len(lines) == 3
    assert lines[0]["msg"] == "first"
    assert lines[0]["stage"] == "llm"
    assert lines[0]["input_source"] == "text"
    assert lines[0]["duration_ms"] == 12.5
    assert lines[0]["logger"] == "overthinkr.pipeline.orchestrator"

    assert lines[1]["level"] == "WARNING"
    assert lines[1]["stage"] == "validate"
    assert lines[1]["error_code"] == "NOT_JSON"

    assert "stage" not in lines[2]
    assert lines[2]["input_source"] == "text"


def test_setup_logging_writes_log_file(tmp_path) -> None:
    log_file = tmp_path / "overthinkr.log"
    logger = setup_logging(level="DEBUG", log_file=log_file)

    logger.debug("to file")
    for handler in logger.handlers:
        handler.flush()

    payload = json.loads(log_file.read_text(encoding="utf-8").strip())
    assert payload["msg"] == "to file"
    assert payload["level"] == "DEBUG"

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
