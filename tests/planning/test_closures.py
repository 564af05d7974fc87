import asyncio
from datetime import date, datetime

import httpx
import pytest
import pytz

from infrastructure.api.school_calendar import SchoolCalendarAPI, parse_vacation_periods
from planbot.services.planning.closures import (
    ClosureCalendar,
    PublicHolidaySource,
    ZoneVacationSource,
)
from planbot.services.planning.exceptions import ClosureDataUnavailableError
from planbot.services.planning.models import ClosureKind

from .conftest import FakeClosureSource, holiday, vacation

ICS = "\r\n".join(
    [
        "BEGIN:VCALENDAR",
        "BEGIN:VEVENT",
        "DTSTART;VALUE=DATE:20241019",
        "DTEND;VALUE=DATE:20241104",
        "SUMMARY:Vacances de la Toussaint - Zone C",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "DTSTART;VALUE=DATE:20241221",
        "DTEND;VALUE=DATE:20250106",
        "SUMMARY:Vacances de No",
        " ël - Zone C",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "DTSTART;VALUE=DATE:20240902",
        "DTEND;VALUE=DATE:20240903",
        "SUMMARY:Rentrée scolaire des enseignants",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
)


def ics_transport(calls: list, status_code: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url)
        return httpx.Response(status_code, text=ICS)

    return httpx.MockTransport(handler)


class TestVacationFeed:
    """Test cases for the school vacation ICS feed"""

    def test_parse_periods(self):
        periods = parse_vacation_periods(ICS)

        assert [period.summary for period in periods] == [
            "Vacances de la Toussaint - Zone C",
            "Vacances de Noël - Zone C",
        ]
        assert periods[0].start == date(2024, 10, 19)
        assert periods[0].end == date(2024, 11, 3)

    async def test_periods_touching_a_year(self):
        api = SchoolCalendarAPI(transport=ics_transport([]))

        periods_2025 = await api.get_vacation_periods(2025)

        assert [period.summary for period in periods_2025] == ["Vacances de Noël - Zone C"]

    async def test_feed_is_cached(self):
        calls = []
        api = SchoolCalendarAPI(transport=ics_transport(calls))

        await api.get_vacation_periods(2024)
        await api.get_vacation_periods(2025)
        assert len(calls) == 1

        api.clear_cache()
        await api.get_vacation_periods(2024)
        assert len(calls) == 2

    async def test_failure_after_retries(self):
        calls = []
        api = SchoolCalendarAPI(transport=ics_transport(calls, status_code=503))

        assert await api.get_vacation_periods(2024) is None
        assert len(calls) == 3

    async def test_unavailable_feed_marks_no_vacation(self):
        api = SchoolCalendarAPI(transport=ics_transport([], status_code=500))

        assert await ZoneVacationSource(api).fetch_year(2024) == []

    async def test_zone_source(self):
        api = SchoolCalendarAPI(transport=ics_transport([]))

        periods = await ZoneVacationSource(api).fetch_year(2024)

        assert {period.kind for period in periods} == {ClosureKind.VACATION}
        assert len(periods) == 2


class TestPublicHolidays:
    async def test_french_holidays(self):
        periods = await PublicHolidaySource().fetch_year(2024)
        holidays_by_day = {
            period.start: period for period in periods if period.kind is ClosureKind.PUBLIC_HOLIDAY
        }

        assert date(2024, 11, 11) in holidays_by_day
        assert date(2024, 5, 9) in holidays_by_day
        assert date(2024, 12, 25) in holidays_by_day

    async def test_ascension_bridge(self):
        periods = await PublicHolidaySource().fetch_year(2024)

        bridges = [period for period in periods if period.start == date(2024, 5, 10)]
        assert len(bridges) == 1
        assert bridges[0].kind is ClosureKind.VACATION
        assert bridges[0].name == "Pont de l'Ascension"


class TestClosureCalendar:
    """Test cases for the per-year closure cache"""

    async def test_lookup_requires_loaded_year(self):
        calendar = ClosureCalendar([FakeClosureSource()])

        with pytest.raises(ClosureDataUnavailableError):
            calendar.closure_for(date(2024, 9, 2))

        await calendar.ensure_years([2024])
        assert calendar.is_loaded(2024)
        assert calendar.closure_for(date(2024, 9, 2)) is None

    async def test_inclusive_ranges(self):
        source = FakeClosureSource({2024: [vacation(date(2024, 10, 19), date(2024, 11, 3))]})
        calendar = ClosureCalendar([source])
        await calendar.ensure_years([2024])

        assert calendar.closure_for(date(2024, 10, 18)) is None
        assert calendar.closure_for(date(2024, 10, 19)) is ClosureKind.VACATION
        assert calendar.closure_for(date(2024, 11, 3)) is ClosureKind.VACATION
        assert calendar.closure_for(date(2024, 11, 4)) is None

    async def test_public_holiday_wins(self):
        source = FakeClosureSource(
            {
                2024: [
                    vacation(date(2024, 10, 19), date(2024, 11, 3)),
                    holiday(date(2024, 11, 1), "Toussaint"),
                ]
            }
        )
        calendar = ClosureCalendar([source])
        await calendar.ensure_years([2024])

        assert calendar.closure_for(date(2024, 11, 1)) is ClosureKind.PUBLIC_HOLIDAY

    async def test_aware_datetimes_use_local_date(self):
        source = FakeClosureSource({2024: [holiday(date(2024, 11, 11))]})
        calendar = ClosureCalendar([source])
        await calendar.ensure_years([2024])

        # 23:30 UTC on the 10th is already the 11th in Paris
        moment = pytz.utc.localize(datetime(2024, 11, 10, 23, 30))
        assert calendar.closure_for(moment) is ClosureKind.PUBLIC_HOLIDAY
        assert calendar.closure_for(datetime(2024, 11, 10, 23, 30)) is None

    async def test_years_are_loaded_once(self):
        source = FakeClosureSource()
        calendar = ClosureCalendar([source])

        await asyncio.gather(*(calendar.ensure_years([2024, 2025]) for _ in range(5)))
        assert sorted(source.calls) == [2024, 2025]

        await calendar.refresh(2024)
        assert sorted(source.calls) == [2024, 2024, 2025]

    async def test_invalidate(self):
        source = FakeClosureSource()
        calendar = ClosureCalendar([source])
        await calendar.ensure_years([2024, 2025])

        calendar.invalidate(2024)
        assert not calendar.is_loaded(2024)
        assert calendar.is_loaded(2025)

        calendar.invalidate()
        assert not calendar.is_loaded(2025)
