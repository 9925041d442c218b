"""Record store operations over a ``StoreHandle``.

Each method runs in its own session and commits before returning, so every
individual read or write is atomic. Multi-step sequences (retention, then
lookup, then insert or update) are serialised by the ingestion engine.
"""

import logging
from pathlib import Path
from typing import List, Optional

from sqlalchemy import delete, func, select, update

from ..exceptions import RecordNotFound
from ..models.invocation_record import InvocationRecord
from .connection import BlockingCloseCallback, StoreHandle, delete_storage

logger = logging.getLogger(__name__)


class RecordStore(StoreHandle):
    """Durable storage of ``InvocationRecord`` rows for one installation."""

    async def insert(self, record: InvocationRecord) -> int:
        """Persist a new record and return its assigned ``record_id``."""
        async with self.session() as session:
            entry = InvocationRecord(
                command_id=record.command_id,
                day=record.day,
                hotkey_count=record.hotkey_count or 0,
                palette_count=record.palette_count or 0,
            )
            session.add(entry)
            await session.commit()
            record.record_id = entry.record_id
            return entry.record_id

    async def get_all(self) -> List[InvocationRecord]:
        """All records ordered by ``record_id`` ascending."""
        async with self.session() as session:
            result = await session.execute(
                select(InvocationRecord).order_by(InvocationRecord.record_id)
            )
            return list(result.scalars().all())

    async def count(self) -> int:
        async with self.session() as session:
            result = await session.execute(select(func.count(InvocationRecord.record_id)))
            return result.scalar() or 0

    async def find_by_day_and_command(
        self, day: int, command_id: str
    ) -> Optional[InvocationRecord]:
        """Scan the ``day`` index and return the first row for *command_id*."""
        async with self.session() as session:
            result = await session.execute(
                select(InvocationRecord)
                .where(InvocationRecord.day == day)
                .order_by(InvocationRecord.record_id)
            )
            for record in result.scalars():
                if record.command_id == command_id:
                    return record
            return None

    async def update_counters(
        self, record_id: int, hotkey: int = 0, palette: int = 0
    ) -> bool:
        """Add the given deltas to a record's counters.

        Only the counters with a non-zero delta are touched. Returns ``False``
        when the record no longer exists (evicted concurrently).
        """
        values = {}
        if hotkey:
            values["hotkey_count"] = InvocationRecord.hotkey_count + hotkey
        if palette:
            values["palette_count"] = InvocationRecord.palette_count + palette

        async with self.session() as session:
            if values:
                result = await session.execute(
                    update(InvocationRecord)
                    .where(InvocationRecord.record_id == record_id)
                    .values(**values)
                )
                matched = (result.rowcount or 0) > 0
            else:
                matched = await session.get(InvocationRecord, record_id) is not None
            await session.commit()

        if not matched:
            logger.debug("%s; skipping counter update", RecordNotFound(record_id))
        return matched

    async def delete_below_record_id(self, bound: int) -> int:
        """Delete every record with ``record_id < bound``."""
        async with self.session() as session:
            result = await session.execute(
                delete(InvocationRecord).where(InvocationRecord.record_id < bound)
            )
            await session.commit()
            return result.rowcount or 0

    async def delete_through_day(self, day: int) -> int:
        """Delete every record with ``day <= day``."""
        async with self.session() as session:
            result = await session.execute(
                delete(InvocationRecord).where(InvocationRecord.day <= day)
            )
            await session.commit()
            return result.rowcount or 0

    async def clear_all(self) -> int:
        """Delete every record."""
        async with self.session() as session:
            result = await session.execute(delete(InvocationRecord))
            await session.commit()
            deleted = result.rowcount or 0
        logger.info("Cleared %d records from %s", deleted, self.path.name)
        return deleted


async def open_store(
    installation_id: str,
    data_dir: Path,
    on_blocking_close: Optional[BlockingCloseCallback] = None,
) -> RecordStore:
    """Open (creating if needed) the store of an installation."""
    store = RecordStore(installation_id, data_dir, on_blocking_close=on_blocking_close)
    await store.open()
    return store


async def get_all_records(store: RecordStore) -> List[InvocationRecord]:
    return await store.get_all()


async def clear_all_records(store: RecordStore) -> int:
    return await store.clear_all()


async def destroy_store(installation_id: str, data_dir: Path) -> None:
    """Delete an installation's storage, force-closing any open handle."""
    await delete_storage(installation_id, data_dir)
