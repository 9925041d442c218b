"""Structured logging configuration for Command Tracker.

Provides JSON-formatted structured logging with contextual fields
(installation_id, command_id, channel) via contextvars.
"""

import json
import logging
import sys
from contextvars import ContextVar
from typing import Optional

# Context variables for invocation-scoped logging fields
_installation_id: ContextVar[Optional[str]] = ContextVar("installation_id", default=None)
_command_id: ContextVar[Optional[str]] = ContextVar("command_id", default=None)
_channel: ContextVar[Optional[str]] = ContextVar("channel", default=None)


def set_log_context(
    installation_id: Optional[str] = None,
    command_id: Optional[str] = None,
    channel: Optional[str] = None,
):
    """Set contextual logging fields for the current async context."""
    if installation_id is not None:
        _installation_id.set(installation_id)
    if command_id is not None:
        _command_id.set(command_id)
    if channel is not None:
        _channel.set(channel)


def clear_log_context():
    """Clear invocation-scoped logging fields."""
    _command_id.set(None)
    _channel.set(None)


def _context_fields() -> dict:
    fields = {}
    installation = _installation_id.get()
    if installation:
        fields["installation_id"] = installation
    command = _command_id.get()
    if command:
        fields["command_id"] = command
    channel = _channel.get()
    if channel:
        fields["channel"] = channel
    return fields


class StructuredFormatter(logging.Formatter):
    """JSON structured log formatter with context fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_entry.update(_context_fields())

        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


class HumanReadableFormatter(logging.Formatter):
    """Human-readable log formatter with context fields for development."""

    _SHORT_NAMES = {"installation_id": "inst", "command_id": "cmd", "channel": "via"}

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            f"[{self.formatTime(record, self.datefmt)}]",
            f"{record.levelname:8s}",
            f"{record.name}:",
            record.getMessage(),
        ]

        ctx_parts = [
            f"{self._SHORT_NAMES[key]}={value}" for key, value in _context_fields().items()
        ]
        if ctx_parts:
            parts.append(f"[{', '.join(ctx_parts)}]")

        msg = " ".join(parts)

        if record.exc_info and record.exc_info[1]:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


def configure_logging(environment: str = "development", log_level: str = "INFO"):
    """Configure structured logging for the application.

    Args:
        environment: "production" for JSON output, anything else for human-readable.
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Remove existing handlers
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)

    if environment == "production":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(HumanReadableFormatter(
            datefmt="%Y-%m-%d %H:%M:%S"
        ))

    root_logger.addHandler(handler)

    # Quiet noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
