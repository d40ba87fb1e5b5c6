"""
Clinical Reasoning Engine – Logging Utilities
===============================================
Root logger setup for the CLI and the HTTP adapter, plus a helper that emits
assessment-stage events. Event details travel on the record as well as in the
message, so the JSON formatter can write them as real fields.

Environment (read by ``setup_logging_from_env``):

  LOG_LEVEL   DEBUG | INFO | WARNING | ERROR   (default INFO)
  LOG_FILE    optional path, parent directories are created
  LOG_JSON    1 / true / yes for one JSON object per line
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Loggers that would otherwise log every request at INFO.
_QUIET_LOGGERS = ("uvicorn.access", "httpx")


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
) -> logging.Logger:
    """
    Replace the root logger's handlers with a stderr handler (and a file
    handler when ``log_file`` is given).

    Parameters
    ----------
    level : str
        Logging level name. Unknown names fall back to INFO.
    log_file : str, optional
        Extra destination for the same records.
    json_format : bool
        Emit one JSON object per record instead of the pipe-separated text.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    formatter: logging.Formatter = (
        JsonFormatter() if json_format else logging.Formatter(fmt=TEXT_FORMAT, datefmt=TEXT_DATEFMT)
    )

    handlers: list = [logging.StreamHandler(sys.stderr)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


def setup_logging_from_env() -> logging.Logger:
    return setup_logging(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        log_file=os.environ.get("LOG_FILE") or None,
        json_format=os.environ.get("LOG_JSON", "").strip().lower() in {"1", "true", "yes"},
    )


class JsonFormatter(logging.Formatter):
    """One JSON object per record. Pipeline events keep their stage and details."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("stage", "event", "details"):
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = str(record.exc_info[1])
            entry["traceback"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def log_pipeline_event(
    logger: logging.Logger,
    stage: str,
    event: str,
    details: Optional[dict] = None,
    level: int = logging.INFO,
):
    """
    Log ``[stage] event | {details}``. Callers pass counts and ids only,
    never symptom text.
    """
    msg = f"[{stage}] {event}"
    if details:
        msg += f" | {json.dumps(details, default=str, sort_keys=True)}"
    logger.log(level, msg, extra={"stage": stage, "event": event, "details": details or {}})
