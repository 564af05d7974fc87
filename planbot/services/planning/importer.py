"""
Semester import: parse, validate, expand, then replace the persisted entries.
"""

import asyncio
import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from infrastructure.database.models import EntryChild, ScheduleEntry, Semester
from infrastructure.database.repo.requests import PlanningRequestsRepo

from .archive import PlanningArchive
from .closures import ClosureCalendar
from .exceptions import ImportTimeoutError, SemesterLockedError, SemesterNotFoundError
from .expander import CalendarExpander, required_years
from .locks import KeyedLocks
from .models import ImportResult, ProjectedEntry, Roster, RosterPerson
from .template_parser import TemplateParser, read_workbook
from .validator import validate_template

logger = logging.getLogger(__name__)


async def load_roster(repo: PlanningRequestsRepo) -> Roster:
    """Reads the live staff and children lists"""
    staff = await repo.roster.get_staff_members()
    children = await repo.roster.get_children()
    return Roster(
        staff=[RosterPerson(person.id, person.fullname) for person in staff],
        children=[RosterPerson(child.id, child.fullname) for child in children],
    )


def to_models(semester_id: int, entries: List[ProjectedEntry]) -> List[ScheduleEntry]:
    """ORM objects of a projection, child links included"""
    return [
        ScheduleEntry(
            semester_id=semester_id,
            staff_id=entry.staff_id,
            day_of_week=entry.day_of_week,
            start_time=entry.start_time,
            end_time=entry.end_time,
            activity=entry.activity,
            entry_children=[EntryChild(child_id=child_id) for child_id in entry.child_ids],
        )
        for entry in entries
    ]


class PlanningImporter:
    """
    Runs the import pipeline of a semester

    Imports of the same semester are serialised. The persistence step runs in
    one transaction bounded by a timeout; on any failure nothing is written
    and the archived workbook is removed.
    """

    def __init__(
        self,
        session_pool: async_sessionmaker[AsyncSession],
        closures: ClosureCalendar,
        archive: PlanningArchive,
        timeout: float = 120.0,
    ):
        self.session_pool = session_pool
        self.closures = closures
        self.archive = archive
        self.timeout = timeout
        self._locks = KeyedLocks()

    def semester_lock(self, semester_id: int):
        """Lock held by imports of a semester, shared with its submission"""
        return self._locks.acquire(semester_id)

    async def build_projection(
        self, repo: PlanningRequestsRepo, semester: Semester, content: bytes
    ) -> List[ProjectedEntry]:
        """
        Parses, validates and expands a workbook for a semester

        Args:
            repo: Repository used to read the roster
            semester: Target semester
            content: Raw workbook bytes

        Returns:
            Projected entries

        Raises:
            TemplateError: The workbook was rejected
        """
        roster = await load_roster(repo)
        template = TemplateParser(roster).parse(read_workbook(content))
        validate_template(template.entries, roster)

        await self.closures.ensure_years(
            required_years(semester.start_date, semester.end_date)
        )
        return CalendarExpander(self.closures).expand(
            template.entries, semester.start_date, semester.end_date
        )

    async def _load_semester(self, repo: PlanningRequestsRepo, semester_id: int) -> Semester:
        semester = await repo.semester.get_semester(semester_id)
        if semester is None:
            raise SemesterNotFoundError(semester_id)
        return semester

    async def preview(self, semester_id: int, content: bytes) -> ImportResult:
        """
        Validates a workbook and returns its projection without writing anything

        Args:
            semester_id: Target semester
            content: Raw workbook bytes

        Returns:
            ImportResult with the projected entries
        """
        async with self.session_pool() as session:
            repo = PlanningRequestsRepo(session)
            semester = await self._load_semester(repo, semester_id)
            entries = await self.build_projection(repo, semester, content)

        logger.info(
            f"[Import] Preview of semester {semester_id}: {len(entries)} entries"
        )
        return ImportResult(semester_id=semester_id, entries=entries)

    async def import_document(
        self,
        semester_id: int,
        content: bytes,
        file_name: Optional[str] = None,
        uploaded_by: Optional[int] = None,
    ) -> ImportResult:
        """
        Replaces the entries of a semester with the projection of a workbook

        Args:
            semester_id: Target semester
            content: Raw workbook bytes
            file_name: Original file name
            uploaded_by: Telegram identifier of the importer

        Returns:
            ImportResult with the persisted projection and the archive path

        Raises:
            SemesterNotFoundError: Unknown semester
            SemesterLockedError: The semester was already submitted
            TemplateError: The workbook was rejected
            ImportTimeoutError: The transaction did not finish in time
        """
        async with self.semester_lock(semester_id):
            try:
                return await asyncio.wait_for(
                    self._import(semester_id, content, file_name, uploaded_by),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError:
                logger.error(
                    f"[Import] Import of semester {semester_id} exceeded {self.timeout}s"
                )
                raise ImportTimeoutError(semester_id, self.timeout)

    async def _import(
        self,
        semester_id: int,
        content: bytes,
        file_name: Optional[str],
        uploaded_by: Optional[int],
    ) -> ImportResult:
        async with self.session_pool() as session:
            repo = PlanningRequestsRepo(session)
            semester = await self._load_semester(repo, semester_id)
            if semester.is_locked:
                raise SemesterLockedError(semester_id)
            entries = await self.build_projection(repo, semester, content)

        path = self.archive.store(semester_id, content)
        try:
            async with self.session_pool() as session:
                async with session.begin():
                    repo = PlanningRequestsRepo(session)
                    if (await self._load_semester(repo, semester_id)).is_locked:
                        raise SemesterLockedError(semester_id)
                    deleted = await repo.entry.delete_semester_entries(semester_id)
                    await repo.entry.add_entries(to_models(semester_id, entries))
                    await repo.upload.log_upload(
                        semester_id=semester_id,
                        file_name=file_name or path.name,
                        file_path=str(path),
                        file_size=len(content),
                        uploaded_by_user_id=uploaded_by,
                    )
        except BaseException as e:
            logger.error(f"[Import] Import of semester {semester_id} rolled back: {e!r}")
            self.archive.discard(path)
            raise

        logger.info(
            f"[Import] Semester {semester_id}: replaced {deleted} entries with {len(entries)}"
        )
        return ImportResult(semester_id=semester_id, entries=entries, document_path=path)
