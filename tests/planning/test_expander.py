from datetime import date, datetime, time

import pytest

from planbot.services.planning.closures import ClosureCalendar
from planbot.services.planning.exceptions import ClosureDataUnavailableError
from planbot.services.planning.expander import (
    CalendarExpander,
    effective_end,
    occurrences,
    required_years,
)
from planbot.services.planning.models import ClosureKind, TemplateEntry

from .conftest import FakeClosureSource, holiday, vacation


def monday_slot(staff_id=1, slot=1, start=time(9, 0), end=time(10, 0), weekday=1):
    return TemplateEntry(
        staff_id=staff_id,
        staff_name=f"Staff {staff_id}",
        weekday=weekday,
        slot=slot,
        start=start,
        end=end,
        activity="Atelier",
        child_ids=(1,),
    )


async def loaded_calendar(periods=None, years=(2024, 2025)) -> ClosureCalendar:
    calendar = ClosureCalendar([FakeClosureSource(periods)])
    await calendar.ensure_years(years)
    return calendar


class TestDates:
    def test_occurrences(self):
        assert list(occurrences(1, date(2024, 9, 2), date(2024, 9, 16))) == [
            date(2024, 9, 2),
            date(2024, 9, 9),
            date(2024, 9, 16),
        ]
        assert list(occurrences(3, date(2024, 9, 5), date(2024, 9, 11))) == [
            date(2024, 9, 11)
        ]
        assert list(occurrences(5, date(2024, 9, 2), date(2024, 9, 5))) == []

    def test_second_half_clamped_to_june(self):
        assert effective_end(date(2025, 2, 3), date(2025, 7, 15)) == date(2025, 6, 30)
        assert effective_end(date(2025, 2, 3), date(2025, 6, 1)) == date(2025, 6, 1)
        assert effective_end(date(2024, 9, 2), date(2025, 1, 31)) == date(2025, 1, 31)

    def test_required_years(self):
        assert required_years(date(2024, 9, 2), date(2025, 1, 31)) == {2024, 2025}
        assert required_years(date(2025, 2, 3), date(2026, 1, 1)) == {2025}


class TestCalendarExpander:
    """Test cases for the semester projection"""

    async def test_weekly_occurrences(self):
        expander = CalendarExpander(await loaded_calendar())

        projected = expander.expand([monday_slot()], date(2024, 9, 2), date(2024, 9, 16))

        assert [entry.start_time for entry in projected] == [
            datetime(2024, 9, 2, 9, 0),
            datetime(2024, 9, 9, 9, 0),
            datetime(2024, 9, 16, 9, 0),
        ]
        assert all(entry.end_time.time() == time(10, 0) for entry in projected)
        assert all(entry.child_ids == (1,) for entry in projected)
        assert all(entry.closure is None for entry in projected)

    async def test_holiday_gives_closure_marker(self):
        calendar = await loaded_calendar({2024: [holiday(date(2024, 11, 11), "Armistice")]})

        projected = CalendarExpander(calendar).expand(
            [monday_slot()], date(2024, 11, 4), date(2024, 11, 18)
        )

        closure = projected[1]
        assert closure.closure is ClosureKind.PUBLIC_HOLIDAY
        assert closure.activity == "public holiday"
        assert closure.start_time == closure.end_time == datetime(2024, 11, 11)
        assert closure.child_ids == ()
        assert projected[0].closure is None
        assert projected[2].closure is None

    async def test_one_marker_per_staff_and_day(self):
        calendar = await loaded_calendar(
            {2024: [vacation(date(2024, 10, 19), date(2024, 11, 3))]}
        )
        entries = [
            monday_slot(staff_id=1, slot=1),
            monday_slot(staff_id=1, slot=2, start=time(10, 0), end=time(11, 0)),
            monday_slot(staff_id=2, slot=1),
        ]

        projected = CalendarExpander(calendar).expand(
            entries, date(2024, 10, 21), date(2024, 10, 25)
        )

        assert [(entry.staff_id, entry.activity) for entry in projected] == [
            (1, "vacation"),
            (2, "vacation"),
        ]

    async def test_ordered_by_start_then_staff(self):
        entries = [
            monday_slot(staff_id=2, slot=2, start=time(10, 0), end=time(11, 0)),
            monday_slot(staff_id=2, slot=1),
            monday_slot(staff_id=1, slot=1),
        ]

        projected = CalendarExpander(await loaded_calendar()).expand(
            entries, date(2024, 9, 2), date(2024, 9, 2)
        )

        assert [(entry.start_time.hour, entry.staff_id) for entry in projected] == [
            (9, 1),
            (9, 2),
            (10, 2),
        ]

    async def test_june_clamp(self):
        entries = [monday_slot()]

        projected = CalendarExpander(await loaded_calendar(years=(2025,))).expand(
            entries, date(2025, 6, 16), date(2025, 7, 14)
        )

        assert [entry.day for entry in projected] == [
            date(2025, 6, 16),
            date(2025, 6, 23),
            date(2025, 6, 30),
        ]

    async def test_unloaded_year(self):
        expander = CalendarExpander(await loaded_calendar(years=(2024,)))

        with pytest.raises(ClosureDataUnavailableError):
            expander.expand([monday_slot()], date(2024, 12, 23), date(2025, 1, 10))
