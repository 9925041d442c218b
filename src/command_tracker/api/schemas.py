"""Request and response schemas shared by the API routers."""

from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.invocation_record import InvocationRecord
from ..tracking.days import DateFormat, format_day
from ..tracking.ingestion import InvocationChannel
from ..tracking.projections import CommandDescriptor, ProjectionRow, ViewKind


class InvocationRequest(BaseModel):
    command_id: str = Field(min_length=1)
    channel: InvocationChannel


class RecordItem(BaseModel):
    record_id: int
    command_id: str
    day: int
    hotkey_count: int
    palette_count: int


class RecordListResponse(BaseModel):
    items: List[RecordItem]
    total: int


class ClearRecordsResponse(BaseModel):
    deleted: int


class CommandItem(BaseModel):
    command_id: str
    name: str
    hotkeys: List[str] = Field(default_factory=list)

    def to_descriptor(self) -> CommandDescriptor:
        return CommandDescriptor(
            command_id=self.command_id,
            name=self.name,
            hotkeys=tuple(self.hotkeys),
        )


class ProjectionRequest(BaseModel):
    catalogue: List[CommandItem]
    view_kind: Optional[ViewKind] = None
    date_format: Optional[DateFormat] = None


class ProjectionRowItem(BaseModel):
    command_id: str
    command: str
    hotkeys: str
    date: str
    day: Optional[int] = None
    total_count: int
    hotkey_count: int
    palette_count: int


class ProjectionResponse(BaseModel):
    view_kind: ViewKind
    view_label: str
    date_heading: str
    date_format: DateFormat
    rows: List[ProjectionRowItem]


def record_to_item(record: InvocationRecord) -> RecordItem:
    return RecordItem(
        record_id=record.record_id,
        command_id=record.command_id,
        day=record.day,
        hotkey_count=record.hotkey_count or 0,
        palette_count=record.palette_count or 0,
    )


def row_to_item(row: ProjectionRow, date_format: DateFormat) -> ProjectionRowItem:
    return ProjectionRowItem(
        command_id=row.command_id,
        command=row.command,
        hotkeys=row.hotkeys,
        date=format_day(row.day, date_format),
        day=row.day,
        total_count=row.total_count,
        hotkey_count=row.hotkey_count,
        palette_count=row.palette_count,
    )
