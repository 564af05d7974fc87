from datetime import date, datetime, time
from io import BytesIO
from typing import Dict, List

import pandas as pd
import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from infrastructure.database.models import (
    Base,
    Child,
    EntryChild,
    ScheduleEntry,
    Semester,
    StaffMember,
    User,
)
from infrastructure.database.repo.requests import PlanningRequestsRepo
from infrastructure.database.setup import create_session_pool
from planbot.misc.dicts import Role
from planbot.services.planning.archive import PlanningArchive
from planbot.services.planning.closures import ClosureCalendar, ClosureSource
from planbot.services.planning.models import ClosureKind, ClosurePeriod, Roster, RosterPerson
from planbot.services.planning.service import PlanningService

HEADER = ["Educator", "9h-10h", "10h-11h", "11h-12h", "14h-15h", "15h-16h"]
WEEKDAY_SHEETS = {"Lundi": 5, "Mardi": 5, "Mercredi": 3, "Jeudi": 5, "Vendredi": 5}

DIRECTOR_ID = 100
STAFF_USER_ID = 200
PARENT_ID = 300
STRANGER_ID = 400


class FakeClosureSource(ClosureSource):
    """Closure source serving fixed periods and counting its calls"""

    name = "fake"

    def __init__(self, periods: Dict[int, List[ClosurePeriod]] = None):
        self.periods = periods or {}
        self.calls: List[int] = []

    async def fetch_year(self, year: int) -> List[ClosurePeriod]:
        self.calls.append(year)
        return list(self.periods.get(year, []))


def vacation(start: date, end: date, name: str = "Vacances") -> ClosurePeriod:
    return ClosurePeriod(start.year, ClosureKind.VACATION, start, end, name)


def holiday(day: date, name: str = "Jour férié") -> ClosurePeriod:
    return ClosurePeriod(day.year, ClosureKind.PUBLIC_HOLIDAY, day, day, name)


def make_workbook(rows: Dict[str, List[List[str]]]) -> Dict[str, pd.DataFrame]:
    """Sheets as read_workbook returns them, header row included"""
    return {
        sheet: pd.DataFrame([HEADER[: WEEKDAY_SHEETS.get(sheet, 5) + 1]] + sheet_rows)
        for sheet, sheet_rows in rows.items()
    }


def full_week(rows_per_staff: Dict[str, str]) -> Dict[str, List[List[str]]]:
    """Every weekday sheet, each staff member repeating one cell on every slot"""
    return {
        sheet: [[name] + [cell] * slots for name, cell in rows_per_staff.items()]
        for sheet, slots in WEEKDAY_SHEETS.items()
    }


def workbook_bytes(rows: Dict[str, List[List[str]]]) -> bytes:
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for sheet, df in make_workbook(rows).items():
            df.to_excel(writer, sheet_name=sheet, header=False, index=False)
    return buffer.getvalue()


VALID_WEEK = full_week({"Marie Curie": "Atelier – tous", "Paul Martin": "pause"})


@pytest.fixture
def roster() -> Roster:
    return Roster(
        staff=[RosterPerson(1, "Marie Curie"), RosterPerson(2, "Paul Martin")],
        children=[RosterPerson(1, "Léa Dupont"), RosterPerson(2, "Tom Bernard")],
    )


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'planning.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session_pool(engine):
    session_pool = create_session_pool(engine)
    async with session_pool() as session:
        session.add_all(
            [
                User(user_id=DIRECTOR_ID, fullname="Claire Director", role=int(Role.DIRECTOR)),
                User(user_id=STAFF_USER_ID, fullname="Marie Curie", role=int(Role.STAFF)),
                User(user_id=PARENT_ID, fullname="Anne Dupont", role=int(Role.PARENT)),
                User(user_id=STRANGER_ID, fullname="Nobody", role=int(Role.UNAUTHORIZED)),
            ]
        )
        await session.flush()
        session.add_all(
            [
                StaffMember(id=1, first_name="Marie", last_name="Curie", user_id=STAFF_USER_ID),
                StaffMember(id=2, first_name="Paul", last_name="Martin"),
                Child(id=1, first_name="Léa", last_name="Dupont", parent_user_id=PARENT_ID),
                Child(id=2, first_name="Tom", last_name="Bernard"),
                Semester(
                    id=1,
                    name="Rentrée 2024",
                    start_date=date(2024, 9, 2),
                    end_date=date(2024, 9, 6),
                ),
            ]
        )
        await session.commit()
    return session_pool


@pytest.fixture
async def repo(session_pool):
    async with session_pool() as session:
        yield PlanningRequestsRepo(session)


@pytest.fixture
async def seeded_entries(session_pool) -> Dict[str, int]:
    """
    Monday 2 September 2024 of semester 1:

    atelier   Marie 09-10, Léa and Tom
    sport     Paul  09-10, no child
    piscine   Paul  10-11, Tom
    musique   Marie 10-11, no child
    closure   Paul, Tuesday vacation marker
    """
    monday = date(2024, 9, 2)

    def at(hour: int) -> datetime:
        return datetime.combine(monday, time(hour, 0))

    entries = {
        "atelier": ScheduleEntry(
            semester_id=1, staff_id=1, day_of_week=1, start_time=at(9), end_time=at(10),
            activity="Atelier",
            entry_children=[EntryChild(child_id=1), EntryChild(child_id=2)],
        ),
        "sport": ScheduleEntry(
            semester_id=1, staff_id=2, day_of_week=1, start_time=at(9), end_time=at(10),
            activity="Sport",
        ),
        "piscine": ScheduleEntry(
            semester_id=1, staff_id=2, day_of_week=1, start_time=at(10), end_time=at(11),
            activity="Piscine", entry_children=[EntryChild(child_id=2)],
        ),
        "musique": ScheduleEntry(
            semester_id=1, staff_id=1, day_of_week=1, start_time=at(10), end_time=at(11),
            activity="Musique",
        ),
        "closure": ScheduleEntry(
            semester_id=1, staff_id=2, day_of_week=2,
            start_time=datetime(2024, 9, 3), end_time=datetime(2024, 9, 3),
            activity=ClosureKind.VACATION.value,
        ),
    }
    async with session_pool() as session:
        session.add_all(entries.values())
        await session.commit()
        return {name: entry.id for name, entry in entries.items()}


@pytest.fixture
def closure_source() -> FakeClosureSource:
    return FakeClosureSource()


@pytest.fixture
def closures(closure_source) -> ClosureCalendar:
    return ClosureCalendar([closure_source])


@pytest.fixture
def archive(tmp_path) -> PlanningArchive:
    return PlanningArchive(tmp_path / "uploads")


@pytest.fixture
def planning(session_pool, closures, archive) -> PlanningService:
    return PlanningService(session_pool, closures, archive, import_timeout=30)


async def get_user(session_pool, user_id: int) -> User:
    async with session_pool() as session:
        return await PlanningRequestsRepo(session).user.get_user(user_id=user_id)
