"""API for the French school vacation calendar."""

import datetime
import logging
import re
from dataclasses import dataclass
from typing import List, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_ICS_URL = (
    "https://fr.ftp.opendatasoft.com/openscol/fr-en-calendrier-scolaire/Zone-C.ics"
)

_SUMMARY_RE = re.compile(r"^SUMMARY[^:]*:(.+)$", re.MULTILINE)
_DTSTART_RE = re.compile(r"^DTSTART(?:;VALUE=DATE)?:(\d{8})", re.MULTILINE)
_DTEND_RE = re.compile(r"^DTEND(?:;VALUE=DATE)?:(\d{8})", re.MULTILINE)
_VACATION_RE = re.compile(r"vacances|pont", re.IGNORECASE)


@dataclass(frozen=True)
class VacationPeriod:
    """School vacation period read from the ICS feed.

    Attributes:
        summary: Event title, e.g. "Vacances de la Toussaint"
        start: First day of the period
        end: Last day of the period (inclusive)
    """

    summary: str
    start: datetime.date
    end: datetime.date


def _parse_ics_date(value: str) -> datetime.date:
    return datetime.datetime.strptime(value, "%Y%m%d").date()


def parse_vacation_periods(ics_text: str) -> List[VacationPeriod]:
    """Extracts vacation periods from an ICS document.

    Only events whose title contains "Vacances" or "Pont" are kept. DTEND is
    exclusive in iCalendar, so one day is subtracted from it.

    Args:
        ics_text: Raw ICS content

    Returns:
        List of periods in feed order
    """
    # RFC 5545 folded lines start with a space or a tab
    unfolded = re.sub(r"\r?\n[ \t]", "", ics_text).replace("\r\n", "\n")

    periods = []
    for raw_event in unfolded.split("BEGIN:VEVENT")[1:]:
        summary_match = _SUMMARY_RE.search(raw_event)
        if not summary_match:
            continue

        summary = summary_match.group(1).strip()
        if not _VACATION_RE.search(summary):
            continue

        start_match = _DTSTART_RE.search(raw_event)
        end_match = _DTEND_RE.search(raw_event)
        if not start_match or not end_match:
            logger.warning(f"[Closures] Vacation event without dates skipped: {summary}")
            continue

        try:
            start = _parse_ics_date(start_match.group(1))
            end = _parse_ics_date(end_match.group(1)) - datetime.timedelta(days=1)
        except ValueError as e:
            logger.warning(f"[Closures] Unreadable vacation dates for {summary}: {e}")
            continue

        periods.append(VacationPeriod(summary=summary, start=start, end=max(start, end)))

    return periods


class SchoolCalendarAPI:
    """API for the school vacations of one zone.

    The ICS document is downloaded once and kept until the cache is cleared.

    Attributes:
        ics_url: URL of the zone ICS feed
        timeout: Timeout for HTTP requests in seconds
    """

    def __init__(
        self,
        ics_url: str = DEFAULT_ICS_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialises the school calendar client.

        Args:
            ics_url: URL of the ICS feed. Zone C by default
            timeout: Timeout for HTTP requests in seconds. 10 by default
            transport: Optional httpx transport, used to mock the feed
        """
        self.ics_url = ics_url
        self.timeout = timeout
        self._transport = transport
        self._ics_text: Optional[str] = None

    async def _fetch_ics(self) -> Optional[str]:
        """Downloads the ICS document with retries.

        Returns:
            ICS content or None on error
        """
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            for attempt in range(3):
                try:
                    response = await client.get(self.ics_url)
                    response.raise_for_status()
                    logger.debug(
                        f"[Closures] Loaded vacation feed {self.ics_url} ({len(response.text)} chars)"
                    )
                    return response.text

                except httpx.HTTPStatusError as e:
                    logger.error(
                        f"[Closures] HTTP error while fetching vacations (attempt {attempt + 1}/3): {e}"
                    )
                    if attempt == 2:
                        return None

                except httpx.RequestError as e:
                    logger.error(
                        f"[Closures] Network error while fetching vacations (attempt {attempt + 1}/3): {e}"
                    )
                    if attempt == 2:
                        return None

        return None

    async def get_vacation_periods(self, year: int) -> Optional[List[VacationPeriod]]:
        """Gets the vacation periods touching a year.

        A period belongs to a year when it starts or ends in it.

        Args:
            year: Calendar year

        Returns:
            List of periods or None if the feed could not be loaded

        Examples:
            >>> import asyncio
            >>> calendar = SchoolCalendarAPI()
            >>> periods = asyncio.run(calendar.get_vacation_periods(2024))
            >>> any("Toussaint" in period.summary for period in periods)
            True
        """
        if self._ics_text is None:
            ics_text = await self._fetch_ics()
            if ics_text is None:
                return None
            self._ics_text = ics_text

        return [
            period
            for period in parse_vacation_periods(self._ics_text)
            if period.start.year == year or period.end.year == year
        ]

    def clear_cache(self) -> None:
        """Drops the downloaded ICS document.

        Examples:
            >>> calendar = SchoolCalendarAPI()
            >>> calendar.clear_cache()
        """
        self._ics_text = None
        logger.debug("[Closures] Vacation feed cache cleared")
