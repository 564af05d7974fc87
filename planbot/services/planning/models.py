"""
Data models for planning operations.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .constants import CANCELLED_PREFIX


def normalize_name(name: str) -> str:
    """Lowercase a name and collapse its whitespace"""
    return re.sub(r"\s+", " ", name).strip().lower()


class ClosureKind(str, Enum):
    PUBLIC_HOLIDAY = "public holiday"
    VACATION = "vacation"


@dataclass(frozen=True)
class RosterPerson:
    """
    Staff member or child as known by the roster
    """

    id: int
    fullname: str

    @property
    def key(self) -> str:
        return normalize_name(self.fullname)


@dataclass
class Roster:
    """
    Live staff and children lists used to resolve workbook names
    """

    staff: List[RosterPerson]
    children: List[RosterPerson]
    _staff_index: Dict[str, RosterPerson] = field(init=False, repr=False)
    _child_index: Dict[str, RosterPerson] = field(init=False, repr=False)

    def __post_init__(self):
        self._staff_index = {person.key: person for person in self.staff}
        self._child_index = {person.key: person for person in self.children}

    def find_staff(self, name: str) -> Optional[RosterPerson]:
        return self._staff_index.get(normalize_name(name))

    def find_child(self, name: str) -> Optional[RosterPerson]:
        return self._child_index.get(normalize_name(name))

    @property
    def child_ids(self) -> Tuple[int, ...]:
        return tuple(child.id for child in self.children)


@dataclass(frozen=True)
class ParsedCell:
    """
    Successfully parsed workbook cell
    """

    activity: str
    names: Tuple[str, ...] = ()
    is_break: bool = False
    wildcard: bool = False


@dataclass(frozen=True)
class CellSyntaxError:
    """
    Structured cell parse failure
    """

    reason: str
    raw: str = ""


@dataclass(frozen=True)
class TemplateEntry:
    """
    One (staff, weekday, slot) assignment of the weekly grid
    """

    staff_id: int
    staff_name: str
    weekday: int
    slot: int
    start: time
    end: time
    activity: str
    child_ids: Tuple[int, ...] = ()


@dataclass
class ParsedTemplate:
    entries: List[TemplateEntry]
    slot_times: Dict[int, Tuple[time, time]]


@dataclass(frozen=True)
class ProjectedEntry:
    """
    One dated occurrence produced by the calendar expansion
    """

    staff_id: int
    day_of_week: int
    start_time: datetime
    end_time: datetime
    activity: str
    child_ids: Tuple[int, ...] = ()
    closure: Optional[ClosureKind] = None

    @property
    def day(self) -> date:
        return self.start_time.date()


@dataclass(frozen=True)
class ClosurePeriod:
    """
    Closed date range (inclusive) cached for one calendar year
    """

    year: int
    kind: ClosureKind
    start: date
    end: date
    name: Optional[str] = None

    def contains(self, moment: datetime) -> bool:
        noon = time(12, 0)
        return (
            datetime.combine(self.start, noon)
            <= moment
            <= datetime.combine(self.end, noon)
        )


@dataclass(frozen=True)
class ScheduleEntryView:
    """
    Read model of a persisted entry, ready for display
    """

    id: Optional[int]
    staff_id: int
    staff_name: str
    day_of_week: int
    start_time: datetime
    end_time: datetime
    activity: str
    children: Tuple[str, ...] = ()
    is_event: bool = False

    @property
    def is_cancelled(self) -> bool:
        return self.activity.startswith(CANCELLED_PREFIX)

    @property
    def is_closure(self) -> bool:
        return self.activity in {kind.value for kind in ClosureKind}


@dataclass
class ImportResult:
    semester_id: int
    entries: Sequence[ProjectedEntry]
    document_path: Optional[Path] = None

    @property
    def entries_count(self) -> int:
        return len(self.entries)

    @property
    def closures_count(self) -> int:
        return sum(1 for entry in self.entries if entry.closure is not None)


@dataclass(frozen=True)
class TransferredChild:
    """
    Child moved away from an entry by a reassignment
    """

    child_id: int
    child_name: str
    current_entry_id: int
    current_activity: str
    current_staff: str
