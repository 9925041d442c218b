"""Database models for Command Tracker."""

from .base import Base
from .invocation_record import InvocationRecord

__all__ = [
    "Base",
    "InvocationRecord",
]
