"""Store exception types.

Raised by ``RecordStore`` and propagated unchanged through ingestion and
projection building. The host callback boundary and the HTTP layer are the
only places that catch them.
"""

from typing import Optional


class StoreError(Exception):
    """Base exception for all record store errors."""

    def __init__(self, message: str, installation_id: str = ""):
        self.installation_id = installation_id
        super().__init__(message)


class StoreUnavailable(StoreError):
    """The storage handle is not open, or was closed under an in-flight call."""

    pass


class BlockingOpenConflict(StoreError):
    """A destructive delete was attempted while other handles stayed open."""

    def __init__(
        self,
        message: str,
        open_handles: int = 0,
        installation_id: str = "",
    ):
        self.open_handles = open_handles
        super().__init__(message, installation_id)


class RecordNotFound(StoreError):
    """A counter update targeted a record that no longer exists.

    Soft error: ``RecordStore.update_counters`` logs it and returns ``False``
    instead of raising, since it only arises when eviction wins a race.
    """

    def __init__(self, record_id: Optional[int], installation_id: str = ""):
        self.record_id = record_id
        super().__init__(f"Record {record_id} not found", installation_id)
