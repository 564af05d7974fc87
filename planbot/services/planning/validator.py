"""
Coverage and conflict checks of a parsed weekly template.
"""

import logging
from html import escape
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from .constants import WEEKDAY_NAMES, Block, slot_block, weekday_blocks
from .exceptions import CoverageError, ScheduleConflictError
from .models import Roster, RosterPerson, TemplateEntry

logger = logging.getLogger(__name__)

CoverageKey = Tuple[int, Block, int]


@dataclass(frozen=True)
class SlotConflict:
    """Two activities claimed by one staff member in the same slot"""

    first: TemplateEntry
    second: TemplateEntry

    def __str__(self):
        # Activities are escaped by the parser already
        staff_name = escape(self.first.staff_name, quote=False)
        return (
            f"{staff_name} is booked twice on {WEEKDAY_NAMES[self.first.weekday]} "
            f"{self.first.start:%H:%M}-{self.first.end:%H:%M}: "
            f'"{self.first.activity}" and "{self.second.activity}"'
        )


@dataclass(frozen=True)
class MissingStaffWeekdays:
    staff: RosterPerson
    weekdays: Tuple[int, ...]

    def __str__(self):
        days = ", ".join(WEEKDAY_NAMES[weekday] for weekday in self.weekdays)
        return f"Staff member {escape(self.staff.fullname, quote=False)} is missing on {days}"


@dataclass(frozen=True)
class UncoveredChild:
    child: RosterPerson
    weekday: int
    block: Block

    def __str__(self):
        return (
            f"Child {escape(self.child.fullname, quote=False)} has no slot on "
            f"{WEEKDAY_NAMES[self.weekday]} {self.block.value}"
        )


def find_conflicts(entries: Iterable[TemplateEntry]) -> List[SlotConflict]:
    """
    Finds (staff, weekday, slot) triples claimed more than once

    Args:
        entries: Template entries

    Returns:
        One conflict per extra claim, paired with the first claim
    """
    claims: Dict[Tuple[int, int, int], TemplateEntry] = {}
    conflicts = []
    for entry in entries:
        key = (entry.staff_id, entry.weekday, entry.slot)
        if key in claims:
            conflicts.append(SlotConflict(claims[key], entry))
        else:
            claims[key] = entry
    return conflicts


def find_missing_staff(
    entries: Iterable[TemplateEntry], staff: Iterable[RosterPerson]
) -> List[MissingStaffWeekdays]:
    """
    Finds staff members absent from some weekday sheets

    Args:
        entries: Template entries
        staff: Roster staff members

    Returns:
        One violation per staff member, listing the missing weekdays
    """
    present = defaultdict(set)
    for entry in entries:
        present[entry.staff_id].add(entry.weekday)

    violations = []
    for person in staff:
        missing = tuple(
            weekday for weekday in WEEKDAY_NAMES if weekday not in present[person.id]
        )
        if missing:
            violations.append(MissingStaffWeekdays(person, missing))
    return violations


def build_coverage_map(
    entries: Iterable[TemplateEntry], children: Iterable[RosterPerson]
) -> Dict[CoverageKey, bool]:
    """
    Builds the (weekday, block, child) coverage map

    Args:
        entries: Template entries
        children: Roster children

    Returns:
        Mapping of every required (weekday, block, child id) to whether it is covered
    """
    covered = {
        (entry.weekday, slot_block(entry.slot), child_id)
        for entry in entries
        for child_id in entry.child_ids
    }
    return {
        (weekday, block, child.id): (weekday, block, child.id) in covered
        for child in children
        for weekday in WEEKDAY_NAMES
        for block in weekday_blocks(weekday)
    }


def validate_template(entries: List[TemplateEntry], roster: Roster) -> None:
    """
    Runs every template check

    Args:
        entries: Parsed template entries
        roster: Live roster

    Raises:
        ScheduleConflictError: A staff member is booked twice in one slot
        CoverageError: Staff weekdays or child blocks are missing
    """
    conflicts = find_conflicts(entries)
    if conflicts:
        raise ScheduleConflictError(conflicts)

    violations: list = find_missing_staff(entries, roster.staff)

    children = {child.id: child for child in roster.children}
    coverage = build_coverage_map(entries, roster.children)
    violations.extend(
        UncoveredChild(children[child_id], weekday, block)
        for (weekday, block, child_id), is_covered in coverage.items()
        if not is_covered
    )

    if violations:
        logger.info(f"[Planning] Template rejected with {len(violations)} coverage issues")
        raise CoverageError(violations)
