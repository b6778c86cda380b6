from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from threading import local

_log_ctx = local()

LOGGER_NAME = "overthinkr"


def set_log_context(**kwargs: object) -> None:
    for key, value in kwargs.items():
        setattr(_log_ctx, key, value)


def clear_log_context(keys: list[str] | None = None) -> None:
    if keys is None:
        _log_ctx.__dict__.clear()
        return
    for key in keys:
        _log_ctx.__dict__.pop(key, None)


def get_log_context() -> dict[str, object]:
    return {k: v for k, v in _log_ctx.__dict__.items() if not k.startswith("_")}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ctx = get_log_context()
        data = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                "%Y-%m-%dT%H:%M:%SZ"
            ),
            "level": record.levelname,
            "logger": record.name,
            "stage": getattr(record, "stage", None) or ctx.get("stage"),
            "input_source": ctx.get("input_source"),
            "msg": record.getMessage(),
        }

        if hasattr(record, "duration_ms"):
            data["duration_ms"] = record.duration_ms
        if hasattr(record, "error_code"):
            data["error_code"] = record.error_code
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)

        # Clean nulls
        data = {k: v for k, v in data.items() if v is not None}
        return json.dumps(data, ensure_ascii=False)


def setup_logging(
    level: int | str = logging.INFO, log_file: str | Path | None = None
) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = JsonFormatter()

    sh = logging.StreamHandler(sys.stderr)
    sh.setFormatter(formatter)
    logger.addHandler(sh)

    if log_file:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    return logger
