"""Database migration utilities."""

from sqlalchemy.ext.asyncio import AsyncEngine

from ..models.base import Base
from ..models.invocation_record import InvocationRecord  # noqa: F401


async def create_tables(engine: AsyncEngine):
    """Create all database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
