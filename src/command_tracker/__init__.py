"""Command Tracker: per-command, per-day usage history."""

__version__ = "0.1.0"
