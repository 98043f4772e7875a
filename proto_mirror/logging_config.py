"""
Logging Configuration — Step-tagged logging for refresh runs.

Every pipeline log call carries ``extra={"step": ...}`` (reset, fetch,
extract, select, filter, cleanup, plus start/done around them). Both
formatters surface it, so a failed run shows which step stopped it:

    text:  12:34:56 ERROR   [fetch  ] Step 'fetch' failed (network): ...
    json:  {"ts": ..., "level": "ERROR", "step": "fetch", "message": ...}

Records without a step (config warnings, third-party loggers) fall back to
the short logger name.

## Environment Variables

- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_FORMAT: json, text (default: text)

## Usage

    from proto_mirror.logging_config import setup_logging

    setup_logging()  # Call once at startup
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Loggers of the HTTP stack; one line per request/connection at INFO/DEBUG
NOISY_LOGGERS = ("httpx", "httpcore")

STEP_WIDTH = 7


def record_step(record: logging.LogRecord) -> Optional[str]:
    """Pipeline step attached to ``record``, if any."""
    step = getattr(record, "step", None)
    return str(step) if step else None


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for CI logs."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "step": record_step(record),
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


class HumanFormatter(logging.Formatter):
    """
    Coloured single-line output for interactive runs.

    The bracket holds the pipeline step, or the last component of the
    logger name when the record has none.
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, color: Optional[bool] = None):
        super().__init__()
        self.color = sys.stderr.isatty() if color is None else color

    def format(self, record: logging.LogRecord) -> str:
        time_str = datetime.now().strftime("%H:%M:%S")

        level = f"{record.levelname:7}"
        if self.color:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"

        label = record_step(record) or record.name.rsplit(".", 1)[-1]
        line = f"{time_str} {level} [{label[:STEP_WIDTH]:{STEP_WIDTH}}] {record.getMessage()}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
) -> None:
    """
    Configure the root logger with a single stderr handler.

    Args:
        level: Log level name. Defaults to LOG_LEVEL or INFO.
        format_type: ``json`` or ``text``. Defaults to LOG_FORMAT or text.
    """
    log_level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    log_format = (format_type or os.environ.get("LOG_FORMAT", "text")).lower()
    numeric_level = getattr(logging, log_level, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if log_format == "json" else HumanFormatter())
    handler.setLevel(numeric_level)

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        f"Logging configured: level={log_level}, format={log_format}"
    )
