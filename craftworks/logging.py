# craftworks/logging.py
"""
Structured JSON logging for the control plane.

Every line is one JSON object: timestamp, level, logger, message, then
any bound context and per-call fields. Loggers can be bound to the
handoff or repository an operation is about, so every line it emits
carries that key without repeating it at each call site.

Usage:
    from craftworks.logging import get_handoff_logger
    log = get_handoff_logger(handoff.handoff_id)
    log.info("handoff_transitioned", from_state="pending", to_state="active")
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Keys that lead each line, ahead of the free-form fields
CONTEXT_KEYS = ("handoff_id", "repo")


class StructuredLogFormatter(logging.Formatter):
    """Render a record and its structured fields as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        fields = dict(getattr(record, "structured_data", None) or {})
        for key in CONTEXT_KEYS:
            if key in fields:
                log_data[key] = fields.pop(key)
        log_data.update(fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.levelno >= logging.ERROR:
            log_data["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, default=str)


class StructuredLogger:
    """
    Logger that takes an event name plus keyword fields.

    `bind()` returns a child carrying extra context; call-site fields win
    over bound ones on a key clash.
    """

    def __init__(self, name: str, context: Optional[Dict[str, Any]] = None):
        self._logger = logging.getLogger(name)
        self._context = dict(context or {})

    @property
    def name(self) -> str:
        return self._logger.name

    @property
    def context(self) -> Dict[str, Any]:
        return dict(self._context)

    def bind(self, **fields) -> "StructuredLogger":
        return StructuredLogger(self._logger.name, {**self._context, **fields})

    def _log(self, level: int, message: str, exc_info: bool = False, **kwargs):
        extra = {"structured_data": {**self._context, **kwargs}}
        self._logger.log(level, message, exc_info=exc_info, extra=extra)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs):
        self._log(logging.ERROR, message, exc_info=exc_info, **kwargs)

    def exception(self, message: str, **kwargs):
        """Log at ERROR with the active traceback."""
        self._log(logging.ERROR, message, exc_info=True, **kwargs)


_configured = False


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    log_file: Optional[str] = None,
):
    """
    Install the root handlers.

    Args:
        level: Log level name
        json_output: JSON lines (True) or plain text (False) on stdout
        log_file: Optional path that always receives JSON lines
    """
    global _configured
    _configured = True

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    if json_output:
        console_handler.setFormatter(StructuredLogFormatter())
    else:
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredLogFormatter())
        root_logger.addHandler(file_handler)

    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """Structured logger for a module; sets up JSON logging on first use."""
    if not _configured:
        configure_logging()
    return StructuredLogger(name)


def get_handoff_logger(handoff_id: str) -> StructuredLogger:
    """Logger bound to one handoff."""
    return get_logger("craftworks.handoffs").bind(handoff_id=handoff_id)


def get_governance_logger(owner: str, repo: str) -> StructuredLogger:
    """Logger bound to one repository's governance decisions."""
    return get_logger("craftworks.governance").bind(repo=f"{owner}/{repo}")


def get_api_logger() -> StructuredLogger:
    """Logger for API routes."""
    return get_logger("craftworks.api")
