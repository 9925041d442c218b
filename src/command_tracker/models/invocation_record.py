"""Per-command, per-day invocation counter model."""

from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class InvocationRecord(Base):
    """Counters for one command on one calendar day.

    ``day`` is stored as an integer in ``YYYYMMDD`` form so age eviction is a
    plain numeric range delete. At most one row exists per
    ``(command_id, day)``; ingestion guarantees it, the table does not.
    ``record_id`` is never reused, so its order doubles as insertion age.
    """

    __tablename__ = "invocation_records"
    __table_args__ = {"sqlite_autoincrement": True}

    record_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    command_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    day: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    hotkey_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    palette_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __init__(
        self,
        command_id: str,
        day: int,
        hotkey_count: int = 0,
        palette_count: int = 0,
        record_id: Optional[int] = None,
    ):
        super().__init__(
            command_id=command_id,
            day=day,
            hotkey_count=hotkey_count,
            palette_count=palette_count,
            record_id=record_id,
        )

    @property
    def total_count(self) -> int:
        return (self.hotkey_count or 0) + (self.palette_count or 0)

    def __repr__(self) -> str:
        return (
            f"<InvocationRecord(record_id={self.record_id}, command_id='{self.command_id}', "
            f"day={self.day}, hotkey={self.hotkey_count}, palette={self.palette_count})>"
        )
