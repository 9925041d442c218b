"""Test configuration and fixtures."""

import os
from datetime import date

import pytest
import pytest_asyncio

# Set test environment variables BEFORE importing the app
os.environ["COMMAND_TRACKER_ENVIRONMENT"] = "test"

from command_tracker.database.store import RecordStore
from command_tracker.models.invocation_record import InvocationRecord


TODAY = date(2024, 3, 15)


class FixedClock:
    """Callable clock returning a settable date."""

    def __init__(self, today: date = TODAY):
        self.today = today

    def __call__(self) -> date:
        return self.today


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest_asyncio.fixture
async def store(tmp_path):
    """An open record store backed by a temporary SQLite file."""
    record_store = RecordStore("test-install", tmp_path)
    await record_store.open()
    yield record_store
    await record_store.close()


async def seed_records(store: RecordStore, rows):
    """Insert ``(command_id, day, hotkey, palette)`` rows in one transaction."""
    async with store.session() as session:
        session.add_all([
            InvocationRecord(
                command_id=command_id,
                day=day,
                hotkey_count=hotkey,
                palette_count=palette,
            )
            for command_id, day, hotkey, palette in rows
        ])
        await session.commit()


@pytest.fixture
def seed():
    return seed_records
