"""Turns a command invocation into a store mutation.

``IngestionEngine.record()`` propagates store errors unchanged.
``IngestionEngine.on_invocation()`` is the host callback: it never raises,
so a storage fault cannot block the command the user actually ran.
"""

import asyncio
import enum
import logging
import time
from datetime import date
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..database.store import RecordStore
from ..exceptions import StoreError
from ..models.invocation_record import InvocationRecord
from ..observability import metrics
from ..observability.logging import clear_log_context, set_log_context
from .days import to_day_number
from .retention import RetentionPolicy

logger = logging.getLogger(__name__)


class InvocationChannel(str, enum.Enum):
    """Trigger path of an invocation."""

    HOTKEY = "hotkey"
    PALETTE = "palette"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str) and value.lower() in ("command-palette", "cmd-palette"):
            return cls.PALETTE
        return None


class IngestionOutcome(str, enum.Enum):
    """What a single ``record()`` call did to the store."""

    INSERTED = "inserted"
    UPDATED = "updated"
    SKIPPED = "skipped"


class IngestionEngine:
    """Finds or creates today's record for a command and bumps one counter.

    The retention, lookup and write steps run under one lock so two
    invocations of the same command on the same day cannot both insert.
    """

    def __init__(
        self,
        store: RecordStore,
        retention: Optional[RetentionPolicy] = None,
        tracking_enabled: Callable[[], bool] = lambda: True,
        clock: Callable[[], date] = date.today,
    ):
        self.store = store
        self.retention = retention or RetentionPolicy()
        self._tracking_enabled = tracking_enabled
        self._clock = clock
        self._lock = asyncio.Lock()

    async def record(self, command_id: str, channel: InvocationChannel) -> IngestionOutcome:
        """Record one invocation of *command_id*."""
        channel = InvocationChannel(channel)
        if not self._tracking_enabled():
            return IngestionOutcome.SKIPPED

        async with self._lock:
            today = self._clock()
            await self.retention.enforce(self.store, today)

            day = to_day_number(today)
            existing = await self.store.find_by_day_and_command(day, command_id)
            if existing is not None:
                if channel is InvocationChannel.HOTKEY:
                    await self.store.update_counters(existing.record_id, hotkey=1)
                else:
                    await self.store.update_counters(existing.record_id, palette=1)
                return IngestionOutcome.UPDATED

            await self.store.insert(
                InvocationRecord(
                    command_id=command_id,
                    day=day,
                    hotkey_count=1 if channel is InvocationChannel.HOTKEY else 0,
                    palette_count=1 if channel is InvocationChannel.PALETTE else 0,
                )
            )
            return IngestionOutcome.INSERTED

    async def on_invocation(self, command_id: str, channel: InvocationChannel) -> None:
        """Host callback; records the invocation and swallows store failures."""
        channel = InvocationChannel(channel)
        set_log_context(command_id=command_id, channel=channel.value)
        started = time.monotonic()
        try:
            outcome = await self.record(command_id, channel)
        except (StoreError, SQLAlchemyError):
            metrics.record_ingestion_failure(channel.value)
            logger.exception("Failed to record invocation")
            return
        finally:
            clear_log_context()

        metrics.record_invocation(channel.value, outcome.value, time.monotonic() - started)
        logger.debug("Recorded %s invocation of %s: %s", channel.value, command_id, outcome.value)
