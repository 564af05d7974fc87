"""
Institutional closures: public holidays, the Ascension bridge and school vacations.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

import holidays
import pytz

from infrastructure.api.school_calendar import SchoolCalendarAPI

from .exceptions import ClosureDataUnavailableError
from .models import ClosureKind, ClosurePeriod

logger = logging.getLogger(__name__)

ASCENSION_BRIDGE_NAME = "Pont de l'Ascension"


class ClosureSource(ABC):
    """Origin of closure periods"""

    name: str = "closures"

    @abstractmethod
    async def fetch_year(self, year: int) -> List[ClosurePeriod]:
        """
        Loads the closure periods of a calendar year

        Args:
            year: Calendar year

        Returns:
            List of closure periods
        """


class PublicHolidaySource(ClosureSource):
    """National public holidays computed by the holidays library"""

    name = "public holidays"

    def __init__(self, country: str = "FR", language: str = "fr"):
        self.country = country
        self.language = language

    async def fetch_year(self, year: int) -> List[ClosurePeriod]:
        calendar = holidays.country_holidays(
            self.country, years=year, language=self.language
        )

        periods = []
        for day, holiday_name in sorted(calendar.items()):
            periods.append(
                ClosurePeriod(year, ClosureKind.PUBLIC_HOLIDAY, day, day, holiday_name)
            )
            # The day after Ascension Thursday is bridged
            if "ascension" in holiday_name.lower():
                bridge = day + timedelta(days=1)
                periods.append(
                    ClosurePeriod(
                        year, ClosureKind.VACATION, bridge, bridge, ASCENSION_BRIDGE_NAME
                    )
                )

        logger.debug(f"[Closures] {len(periods)} public holiday periods for {year}")
        return periods


class ZoneVacationSource(ClosureSource):
    """School vacations of one zone, read from the official ICS feed"""

    name = "school vacations"

    def __init__(self, api: SchoolCalendarAPI, zone: str = "Zone C"):
        self.api = api
        self.zone = zone

    async def fetch_year(self, year: int) -> List[ClosurePeriod]:
        vacation_periods = await self.api.get_vacation_periods(year)
        if vacation_periods is None:
            logger.warning(
                f"[Closures] {self.zone} vacations unavailable for {year}, no vacation will be marked"
            )
            return []

        logger.debug(
            f"[Closures] {len(vacation_periods)} {self.zone} vacation periods for {year}"
        )
        return [
            ClosurePeriod(year, ClosureKind.VACATION, period.start, period.end, period.summary)
            for period in vacation_periods
        ]


class ClosureCalendar:
    """
    Per-year cache of closure periods

    Years are loaded explicitly with ensure_years, lookups never trigger I/O.
    Concurrent loads of the same year share one lock, so the sources are
    queried once per year until the year is refreshed or invalidated.
    """

    def __init__(
        self, sources: Sequence[ClosureSource], timezone: str = "Europe/Paris"
    ):
        self.sources = list(sources)
        self.timezone = pytz.timezone(timezone)
        self._periods: Dict[int, List[ClosurePeriod]] = {}
        self._locks: Dict[int, asyncio.Lock] = {}

    def is_loaded(self, year: int) -> bool:
        return year in self._periods

    async def _load(self, year: int, force: bool = False) -> None:
        lock = self._locks.setdefault(year, asyncio.Lock())
        async with lock:
            if year in self._periods and not force:
                return

            periods = []
            for source in self.sources:
                periods.extend(await source.fetch_year(year))

            self._periods[year] = periods
            logger.info(f"[Closures] Loaded {len(periods)} closure periods for {year}")

    async def ensure_years(self, years: Iterable[int]) -> None:
        """
        Loads the years missing from the cache

        Args:
            years: Calendar years
        """
        for year in sorted(set(years)):
            if year not in self._periods:
                await self._load(year)

    async def refresh(self, year: int) -> None:
        """Reloads one year from the sources"""
        await self._load(year, force=True)

    def invalidate(self, year: Optional[int] = None) -> None:
        """
        Drops cached years

        Args:
            year: Year to drop. If None, drops every year
        """
        if year is None:
            self._periods.clear()
            logger.debug("[Closures] Closure cache cleared")
        else:
            self._periods.pop(year, None)
            logger.debug(f"[Closures] Closure cache for {year} cleared")

    def periods(self, year: int) -> List[ClosurePeriod]:
        if year not in self._periods:
            raise ClosureDataUnavailableError(year)
        return list(self._periods[year])

    def _local_noon(self, day) -> datetime:
        if isinstance(day, datetime):
            if day.tzinfo is not None:
                day = day.astimezone(self.timezone)
            day = day.date()
        return datetime.combine(day, time(12, 0))

    def closure_for(self, day) -> Optional[ClosureKind]:
        """
        Tells whether a date is closed and why

        Public holidays win over vacations.

        Args:
            day: Date, or datetime converted to the local date

        Returns:
            ClosureKind or None when the institution is open

        Raises:
            ClosureDataUnavailableError: The year was not loaded
        """
        moment = self._local_noon(day)
        matching = {
            period.kind for period in self.periods(moment.year) if period.contains(moment)
        }

        if ClosureKind.PUBLIC_HOLIDAY in matching:
            return ClosureKind.PUBLIC_HOLIDAY
        if ClosureKind.VACATION in matching:
            return ClosureKind.VACATION
        return None


def build_closure_calendar(
    vacation_api: SchoolCalendarAPI,
    zone: str = "Zone C",
    timezone: str = "Europe/Paris",
) -> ClosureCalendar:
    """Closure calendar combining French public holidays and zone vacations"""
    return ClosureCalendar(
        [PublicHolidaySource(), ZoneVacationSource(vacation_api, zone)],
        timezone=timezone,
    )
