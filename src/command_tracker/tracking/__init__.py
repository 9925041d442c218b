"""Ingestion, retention and projections over the record store."""

from .days import DateFormat, format_day, to_day_number
from .ingestion import IngestionEngine, IngestionOutcome, InvocationChannel
from .projections import CommandDescriptor, ProjectionRow, ViewKind, build_projection
from .retention import EvictionResult, RetentionPolicy

__all__ = [
    "CommandDescriptor",
    "DateFormat",
    "EvictionResult",
    "IngestionEngine",
    "IngestionOutcome",
    "InvocationChannel",
    "ProjectionRow",
    "RetentionPolicy",
    "ViewKind",
    "build_projection",
    "format_day",
    "to_day_number",
]
