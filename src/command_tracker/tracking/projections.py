"""Read-time aggregations of invocation records into display rows.

Both projections are pure functions of the command catalogue and the record
list. They never touch the store and never raise on malformed records:
missing counters count as zero, a missing day leaves the date empty.
"""

import enum
from dataclasses import dataclass, field, replace
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from pyuca import Collator

HOTKEY_SEPARATOR = " or "


class ViewKind(str, enum.Enum):
    """Which projection to build."""

    PER_COMMAND = "per_command"
    PER_COMMAND_AND_DAY = "per_command_and_day"

    @property
    def label(self) -> str:
        return _VIEW_LABELS[self]

    @property
    def date_heading(self) -> str:
        return "Date of last use" if self is ViewKind.PER_COMMAND else "Date of use"


_VIEW_LABELS = {
    ViewKind.PER_COMMAND: "Count per command",
    ViewKind.PER_COMMAND_AND_DAY: "Count per command and day",
}


@dataclass(frozen=True)
class CommandDescriptor:
    """A command known to the host, with its formatted hotkey labels."""

    command_id: str
    name: str
    hotkeys: Sequence[str] = field(default_factory=tuple)


@dataclass
class ProjectionRow:
    command_id: str
    command: str
    hotkeys: str = ""
    day: Optional[int] = None
    hotkey_count: int = 0
    palette_count: int = 0

    @property
    def total_count(self) -> int:
        return self.hotkey_count + self.palette_count


def _field(record: Any, name: str) -> Any:
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def _count(record: Any, name: str) -> int:
    value = _field(record, name)
    try:
        return int(value) if value is not None else 0
    except (TypeError, ValueError):
        return 0


def _day(record: Any) -> Optional[int]:
    value = _field(record, "day")
    try:
        return int(value) if value else None
    except (TypeError, ValueError):
        return None


@lru_cache(maxsize=1)
def _collator() -> Collator:
    return Collator()


def _sort_key(row: ProjectionRow) -> tuple:
    # Unicode collation: case and accents rank after the base letter
    return _collator().sort_key(row.command)


def build_base_rows(catalogue: Iterable[CommandDescriptor]) -> List[ProjectionRow]:
    """One zero-count row per catalogued command, in catalogue order."""
    return [
        ProjectionRow(
            command_id=command.command_id,
            command=command.name or "",
            hotkeys=HOTKEY_SEPARATOR.join(command.hotkeys or ()),
        )
        for command in catalogue
    ]


def project_per_command(
    catalogue: Iterable[CommandDescriptor], records: Iterable[Any]
) -> List[ProjectionRow]:
    """Lifetime totals per command; the row's day is the most recent use."""
    rows = build_base_rows(catalogue)
    by_id: Dict[str, ProjectionRow] = {}
    for row in rows:
        by_id.setdefault(row.command_id, row)

    for record in records:
        row = by_id.get(_field(record, "command_id"))
        if row is None:
            continue
        row.hotkey_count += _count(record, "hotkey_count")
        row.palette_count += _count(record, "palette_count")
        day = _day(record)
        if day is not None and (row.day is None or day > row.day):
            row.day = day

    return sorted(rows, key=_sort_key)


def project_per_command_and_day(
    catalogue: Iterable[CommandDescriptor], records: Iterable[Any]
) -> List[ProjectionRow]:
    """One row per used (command, day) pair plus one per unused command."""
    rows = build_base_rows(catalogue)
    by_id: Dict[str, ProjectionRow] = {}
    for row in rows:
        by_id.setdefault(row.command_id, row)

    extra: List[ProjectionRow] = []
    seen: Set[str] = set()
    for record in records:
        base = by_id.get(_field(record, "command_id"))
        if base is None:
            continue
        day = _day(record)
        hotkey_count = _count(record, "hotkey_count")
        palette_count = _count(record, "palette_count")
        if base.command_id not in seen:
            seen.add(base.command_id)
            base.day = day
            base.hotkey_count = hotkey_count
            base.palette_count = palette_count
        else:
            extra.append(
                replace(base, day=day, hotkey_count=hotkey_count, palette_count=palette_count)
            )

    return sorted(rows + extra, key=_sort_key)


def build_projection(
    view_kind: ViewKind,
    catalogue: Iterable[CommandDescriptor],
    records: Iterable[Any],
) -> List[ProjectionRow]:
    """Build the display rows for *view_kind*."""
    if ViewKind(view_kind) is ViewKind.PER_COMMAND:
        return project_per_command(catalogue, records)
    return project_per_command_and_day(catalogue, records)
