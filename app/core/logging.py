"""Centralized logging configuration with JSON-formatted extras."""

import json
import logging
import sys

from app.config import settings


class JSONExtrasFormatter(logging.Formatter):
    """Formatter that outputs a readable log line with extras as JSON.

    Output format:
        2024-01-15 10:30:45 | INFO | app.module | Message {"key": "value"}
    """

    RESERVED_ATTRS = frozenset(
        {
            "args",
            "asctime",
            "created",
            "exc_info",
            "exc_text",
            "filename",
            "funcName",
            "levelname",
            "levelno",
            "lineno",
            "message",
            "module",
            "msecs",
            "msg",
            "name",
            "pathname",
            "process",
            "processName",
            "relativeCreated",
            "stack_info",
            "taskName",
            "thread",
            "threadName",
        }
    )

    def extras(self, record: logging.LogRecord) -> dict[str, object]:
        """Attributes passed through ``extra=`` on the logging call."""
        return {
            k: v
            for k, v in record.__dict__.items()
            if k not in self.RESERVED_ATTRS and not k.startswith("_")
        }

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        timestamp = self.formatTime(record, self.datefmt)
        base = f"{timestamp} | {record.levelname:<8} | {record.name} | {record.message}"

        extras = self.extras(record)
        if extras:
            try:
                extras_str = json.dumps(extras, default=str, ensure_ascii=False)
                base = f"{base} {extras_str}"
            except (TypeError, ValueError):
                pass

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            base = f"{base}\n{record.exc_text}"

        return base


class JSONLineFormatter(JSONExtrasFormatter):
    """One JSON object per record, for log shippers.

    Extras are merged into the top-level object; the fixed keys win on collision.
    """

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        payload: dict[str, object] = dict(self.extras(record))
        payload.update(
            {
                "timestamp": self.formatTime(record, self.datefmt),
                "level": record.levelname,
                "logger": record.name,
                "message": record.message,
            }
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=False)


def _resolve_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if level is None:
        if settings.debug:
            return logging.DEBUG
        level = settings.log_level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: int | str | None = None, log_format: str | None = None) -> None:
    """Configure the 'app' logger with console output and JSON extras.

    ``level`` and ``log_format`` default to the ``LOG_LEVEL`` / ``LOG_FORMAT``
    settings; ``debug=True`` forces DEBUG.
    """
    resolved_level = _resolve_level(level)
    if log_format is None:
        log_format = settings.log_format

    logger = logging.getLogger("app")
    logger.setLevel(resolved_level)

    # Avoid adding duplicate handlers if called multiple times
    if logger.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(resolved_level)
    formatter_cls = JSONLineFormatter if log_format == "json" else JSONExtrasFormatter
    handler.setFormatter(formatter_cls(datefmt="%Y-%m-%d %H:%M:%S"))

    logger.addHandler(handler)

    # Prevent propagation to root logger (avoid duplicate output)
    logger.propagate = False
