"""
Projection of the weekly template over a semester.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable, Iterator, List, Set, Tuple

from .closures import ClosureCalendar
from .models import ProjectedEntry, TemplateEntry

logger = logging.getLogger(__name__)


def effective_end(start: date, end: date) -> date:
    """
    Last projected day of a semester

    A semester starting between February and June never runs past June 30.

    Args:
        start: First day of the semester
        end: Last day of the semester

    Returns:
        End date, clamped for second-half semesters
    """
    if 2 <= start.month <= 6:
        return min(end, date(start.year, 6, 30))
    return end


def required_years(start: date, end: date) -> Set[int]:
    """Calendar years touched by a semester"""
    return set(range(start.year, effective_end(start, end).year + 1))


def occurrences(weekday: int, start: date, end: date) -> Iterator[date]:
    """
    Dates of an ISO weekday between two dates (inclusive)

    Args:
        weekday: ISO weekday, 1 = Monday
        start: First day
        end: Last day

    Yields:
        One date per week, starting at the first matching date on or after start
    """
    day = start + timedelta(days=(weekday - start.isoweekday()) % 7)
    while day <= end:
        yield day
        day += timedelta(days=7)


class CalendarExpander:
    """Expands template entries into dated entries"""

    def __init__(self, closures: ClosureCalendar):
        self.closures = closures

    def expand(
        self, entries: Iterable[TemplateEntry], start: date, end: date
    ) -> List[ProjectedEntry]:
        """
        Projects template entries between two dates

        Closed dates give one closure entry per staff member and label, with
        no children and zero duration at midnight.

        Args:
            entries: Validated template entries
            start: First day of the semester
            end: Last day of the semester

        Returns:
            Projected entries ordered by start time

        Raises:
            ClosureDataUnavailableError: A year of the range was not loaded
        """
        last_day = effective_end(start, end)
        emitted_closures: Set[Tuple[int, date, str]] = set()
        projected: List[ProjectedEntry] = []

        for entry in entries:
            for day in occurrences(entry.weekday, start, last_day):
                closure = self.closures.closure_for(day)
                if closure is not None:
                    key = (entry.staff_id, day, closure.value)
                    if key in emitted_closures:
                        continue
                    emitted_closures.add(key)

                    midnight = datetime.combine(day, time.min)
                    projected.append(
                        ProjectedEntry(
                            staff_id=entry.staff_id,
                            day_of_week=entry.weekday,
                            start_time=midnight,
                            end_time=midnight,
                            activity=closure.value,
                            closure=closure,
                        )
                    )
                    continue

                projected.append(
                    ProjectedEntry(
                        staff_id=entry.staff_id,
                        day_of_week=entry.weekday,
                        start_time=datetime.combine(day, entry.start),
                        end_time=datetime.combine(day, entry.end),
                        activity=entry.activity,
                        child_ids=entry.child_ids,
                    )
                )

        projected.sort(key=lambda item: (item.start_time, item.staff_id))
        logger.info(
            f"[Planning] Expanded {len(projected)} entries between {start} and {last_day}"
        )
        return projected
