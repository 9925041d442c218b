"""Storage handle lifecycle for a per-installation SQLite file.

Each owner (ingestion, display, settings) opens its own ``StoreHandle`` on
the same file. Open handles are tracked per path in a process-wide registry
so that deleting the whole store can first ask every other holder to close
through its blocking-close callback.

Legal transitions::

    closed    -> open | destroyed
    open      -> closed | destroyed
    destroyed -> open            (re-creates empty storage)
"""

import enum
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Awaitable, Callable, Dict, Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..exceptions import BlockingOpenConflict, StoreUnavailable
from .migrations import create_tables

logger = logging.getLogger(__name__)

STORE_SUFFIX = "-CommandTracker"
STORE_EXTENSION = ".sqlite3"

# SQLite side files that belong to the same logical store
_SIDE_FILE_SUFFIXES = ("", "-journal", "-wal", "-shm")


class StoreState(str, enum.Enum):
    """Lifecycle state of a storage handle."""

    CLOSED = "closed"
    OPEN = "open"
    DESTROYED = "destroyed"


BlockingCloseCallback = Callable[["StoreHandle"], Awaitable[None]]

_open_handles: Dict[Path, Set["StoreHandle"]] = {}


def storage_path(installation_id: str, data_dir: Path) -> Path:
    """Return the storage file for an installation."""
    return Path(data_dir) / f"{installation_id}{STORE_SUFFIX}{STORE_EXTENSION}"


def open_handle_count(path: Path) -> int:
    """Number of handles currently open on *path*."""
    return len(_open_handles.get(Path(path), ()))


class StoreHandle:
    """An owner's handle on the storage file of one installation."""

    def __init__(
        self,
        installation_id: str,
        data_dir: Path,
        on_blocking_close: Optional[BlockingCloseCallback] = None,
    ):
        self.installation_id = installation_id
        self.path = storage_path(installation_id, data_dir)
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None
        self.state = StoreState.CLOSED
        self._on_blocking_close = on_blocking_close

    @property
    def is_open(self) -> bool:
        return self.state is StoreState.OPEN

    async def open(self) -> None:
        """Open the storage, creating the file and tables if missing.

        Idempotent on an open handle. A failure leaves the handle closed.
        """
        if self.state is StoreState.OPEN:
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_async_engine(
            f"sqlite+aiosqlite:///{self.path}",
            echo=False,
        )
        try:
            await create_tables(engine)
        except (SQLAlchemyError, OSError) as e:
            await engine.dispose()
            raise StoreUnavailable(
                f"Failed to open store at {self.path}: {e}",
                installation_id=self.installation_id,
            ) from e

        self.engine = engine
        self.session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self.state = StoreState.OPEN
        _open_handles.setdefault(self.path, set()).add(self)
        logger.debug("Opened store %s", self.path)

    async def close(self) -> None:
        """Release the handle. No-op unless open."""
        if self.state is not StoreState.OPEN:
            return

        self.state = StoreState.CLOSED
        self._unregister()
        engine = self.engine
        self.engine = None
        self.session_factory = None
        if engine is not None:
            await engine.dispose()
        logger.debug("Closed store %s", self.path)

    async def destroy(self) -> None:
        """Release the handle and delete the underlying storage.

        Raises:
            BlockingOpenConflict: another handle stayed open after being
                asked to close.
        """
        await _force_close_others(self.path, self.installation_id, requester=self)
        await self.close()
        _delete_files(self.path)
        self.state = StoreState.DESTROYED
        logger.info("Destroyed store %s", self.path)

    async def handle_blocking_close(self) -> None:
        """Respond to another owner's destructive delete by closing."""
        logger.info("Store %s is being deleted elsewhere; closing handle", self.path)
        if self._on_blocking_close is not None:
            await self._on_blocking_close(self)
        else:
            await self.close()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session scope for a single store operation."""
        factory = self.session_factory
        if self.state is not StoreState.OPEN or factory is None:
            raise StoreUnavailable(
                f"Store {self.path.name} is {self.state.value}",
                installation_id=self.installation_id,
            )

        try:
            async with factory() as session:
                yield session
        except SQLAlchemyError as e:
            if self.state is not StoreState.OPEN:
                raise StoreUnavailable(
                    f"Store {self.path.name} was closed during the operation",
                    installation_id=self.installation_id,
                ) from e
            raise

    def _unregister(self) -> None:
        handles = _open_handles.get(self.path)
        if handles is None:
            return
        handles.discard(self)
        if not handles:
            del _open_handles[self.path]


async def _force_close_others(
    path: Path,
    installation_id: str,
    requester: Optional[StoreHandle] = None,
) -> None:
    others = [h for h in list(_open_handles.get(path, ())) if h is not requester]
    for handle in others:
        await handle.handle_blocking_close()

    remaining = [h for h in _open_handles.get(path, ()) if h is not requester]
    if remaining:
        raise BlockingOpenConflict(
            f"{len(remaining)} handle(s) still open on {path.name}",
            open_handles=len(remaining),
            installation_id=installation_id,
        )


def _delete_files(path: Path) -> None:
    for suffix in _SIDE_FILE_SUFFIXES:
        path.with_name(path.name + suffix).unlink(missing_ok=True)


async def delete_storage(installation_id: str, data_dir: Path) -> None:
    """Delete an installation's storage after closing every open handle."""
    path = storage_path(installation_id, data_dir)
    await _force_close_others(path, installation_id)
    _delete_files(path)
    logger.info("Deleted store %s", path)
