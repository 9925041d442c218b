"""Count- and age-based eviction, evaluated once per ingestion."""

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from ..database.store import RecordStore
from ..observability import metrics
from .days import to_day_number

logger = logging.getLogger(__name__)

DEFAULT_MAX_RECORDS = 2000
DEFAULT_RETENTION_DAYS = 60


@dataclass(frozen=True)
class EvictionResult:
    """Number of records removed by each bound."""

    by_count: int = 0
    by_age: int = 0

    @property
    def total(self) -> int:
        return self.by_count + self.by_age


class RetentionPolicy:
    """Keeps the store bounded in size and age.

    Both bounds run before the new record is written, count bound first.
    The count bound leaves ``max_records - 1`` records so the insert that
    follows never pushes the store past ``max_records``.
    """

    def __init__(
        self,
        max_records: int = DEFAULT_MAX_RECORDS,
        retention_days: int = DEFAULT_RETENTION_DAYS,
    ):
        if max_records < 1:
            raise ValueError("max_records must be at least 1")
        if retention_days < 0:
            raise ValueError("retention_days must not be negative")
        self.max_records = max_records
        self.retention_days = retention_days

    def age_cutoff(self, today: date) -> int:
        """Newest day number that is old enough to evict."""
        return to_day_number(today - timedelta(days=self.retention_days))

    async def enforce(self, store: RecordStore, today: date) -> EvictionResult:
        by_count = await self._enforce_count(store)
        by_age = await store.delete_through_day(self.age_cutoff(today))

        if by_count:
            metrics.record_eviction("count", by_count)
            logger.info("Evicted %d oldest records (limit %d)", by_count, self.max_records)
        if by_age:
            metrics.record_eviction("age", by_age)
            logger.info(
                "Evicted %d records older than %d days", by_age, self.retention_days
            )
        return EvictionResult(by_count=by_count, by_age=by_age)

    async def _enforce_count(self, store: RecordStore) -> int:
        records = await store.get_all()
        if len(records) < self.max_records:
            return 0

        # record_id of the oldest record to keep; ids may have gaps
        excess = len(records) - self.max_records + 1
        cutoff = records[excess].record_id if excess < len(records) else records[-1].record_id + 1
        return await store.delete_below_record_id(cutoff)
