"""Logging setup.

Records go through ``logging.config.dictConfig`` with one of three formats:
``text`` (plain lines), ``structured`` (plain lines plus request/tool ids) or
``json`` (one object per line for log shippers). Request and tool-call ids
travel on the record through ``extra=``.
"""

import json
import logging
import logging.config
import sys
import traceback
from datetime import datetime
from typing import Any, Dict, Optional

from chromagent.app.core.config import Settings

# Maximum number of lines kept by preview()
PREVIEW_MAX_LINES = 20

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
STRUCTURED_FORMAT = TEXT_FORMAT + " - request_id=%(request_id)s - tool=%(tool_name)s - call_id=%(call_id)s"


class JSONFormatter(logging.Formatter):
    """Render a record as a single JSON object.

    Known context fields are promoted to top-level keys; any other ``extra=``
    values land under ``"extra"``.
    """

    CONTEXT_FIELDS = [
        "request_id",    # X-Request-ID of the chat request
        "client_key",    # Rate limit key (client IP)
        "model",         # Model id requested for the chat turn
        "tool_name",     # Nia tool being executed
        "call_id",       # Tool call correlation id
        "path",
        "method",
        "status_code",
        "duration_ms",
    ]

    # LogRecord attributes never copied into "extra"
    RESERVED = {
        "name", "msg", "args", "levelname", "levelno", "pathname",
        "filename", "module", "exc_info", "exc_text", "stack_info",
        "lineno", "funcName", "created", "msecs", "relativeCreated",
        "thread", "threadName", "processName", "process", "message",
        "asctime", "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).astimezone().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.pathname}:{record.lineno} in {record.funcName}",
        }

        extra: Dict[str, Any] = {}
        for key, value in record.__dict__.items():
            if key in self.RESERVED:
                continue
            if key in self.CONTEXT_FIELDS:
                if value is not None:
                    entry[key] = value
            else:
                extra[key] = value
        if extra:
            entry["extra"] = extra

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = traceback.format_exception(*record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


class ContextFilter(logging.Filter):
    """Give every record the context attributes, so format strings that
    reference ``%(request_id)s`` never fail on records logged without them.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for name in JSONFormatter.CONTEXT_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, None)
        return True


def _formatter(log_format: str) -> Dict[str, Any]:
    if log_format == "json":
        return {"()": "chromagent.app.core.logging.JSONFormatter"}
    if log_format == "structured":
        return {"format": STRUCTURED_FORMAT}
    return {"format": TEXT_FORMAT}


def get_logging_config(settings: Settings) -> Dict[str, Any]:
    """Build the ``dictConfig`` mapping for the configured level and format."""
    log_format = settings.log_format.lower()
    if log_format not in ("text", "structured", "json"):
        log_format = "text"
    level = settings.log_level.upper()

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {log_format: _formatter(log_format)},
        "filters": {"context": {"()": "chromagent.app.core.logging.ContextFilter"}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
                "level": level,
                "formatter": log_format,
                "filters": ["context"],
            },
        },
        "loggers": {
            "chromagent": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn": {"level": level, "handlers": ["console"], "propagate": False},
        },
        "root": {"level": level, "handlers": ["console"]},
    }


def setup_logging(settings: Settings) -> None:
    logging.config.dictConfig(get_logging_config(settings))
    # Access lines and per-request httpx logs are noise at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str = "chromagent") -> logging.Logger:
    return logging.getLogger(name)


def get_log_context(
    request_id: Optional[str] = None,
    tool_name: Optional[str] = None,
    call_id: Optional[str] = None,
    **extra
) -> Dict[str, Any]:
    """``extra=`` mapping for a log call, leaving out unset values.

    Example:
        >>> logger.info(
        ...     "Tool call finished",
        ...     extra=get_log_context(tool_name="searchChromium", call_id="c1")
        ... )
    """
    context = {"request_id": request_id, "tool_name": tool_name, "call_id": call_id, **extra}
    return {k: v for k, v in context.items() if v is not None}


def preview(data: Any, max_lines: int = PREVIEW_MAX_LINES) -> str:
    """Render data as indented JSON, cut to max_lines lines."""
    text = json.dumps(data, indent=2, default=str, ensure_ascii=False)
    lines = text.split("\n")
    if len(lines) > max_lines:
        return "\n".join(lines[:max_lines]) + "\n... (truncated)"
    return text
