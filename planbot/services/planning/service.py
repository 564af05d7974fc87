"""
Role-gated access to the planning engine.
"""

import html
import logging
from datetime import date, datetime
from typing import List, Optional, Sequence

import pytz
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from infrastructure.database.models import Semester, User
from infrastructure.database.repo.requests import PlanningRequestsRepo
from planbot.misc.dicts import MANAGER_ROLES, Role

from .archive import PlanningArchive
from .closures import ClosureCalendar
from .exceptions import (
    AccessDeniedError,
    DocumentNotFoundError,
    IncompletePlanningError,
    InvalidSemesterError,
    PlanningNotFoundError,
    SemesterNotFoundError,
)
from .formatters import entry_view
from .importer import PlanningImporter
from .models import ClosureKind, ImportResult, ScheduleEntryView, TransferredChild
from .mutations import EntryMutator

logger = logging.getLogger(__name__)

ALL_ROLES = (Role.DIRECTOR, Role.SERVICE_MANAGER, Role.STAFF, Role.PARENT)


def require_role(user: User, *roles: Role) -> None:
    """
    Checks that a user holds one of the roles

    Raises:
        AccessDeniedError: The user role is not allowed
    """
    if user is None or user.role not in {int(role) for role in roles + (Role.ROOT,)}:
        raise AccessDeniedError("You are not allowed to do this")


def is_manager(user: User) -> bool:
    return user is not None and user.role in {int(role) for role in MANAGER_ROLES}


class PlanningService:
    """
    Entry point of the planning engine for the bot handlers

    Read operations use the repository of the current request. Imports and
    entry mutations open their own transactions on the session pool.
    """

    def __init__(
        self,
        session_pool: async_sessionmaker[AsyncSession],
        closures: ClosureCalendar,
        archive: PlanningArchive,
        import_timeout: float = 120.0,
        timezone: str = "Europe/Paris",
    ):
        self.session_pool = session_pool
        self.closures = closures
        self.archive = archive
        self.timezone = pytz.timezone(timezone)
        self.importer = PlanningImporter(session_pool, closures, archive, import_timeout)
        self.mutator = EntryMutator(session_pool)

    def now(self) -> datetime:
        """Local wall-clock time, without tzinfo"""
        return datetime.now(self.timezone).replace(tzinfo=None)

    @staticmethod
    async def _get_semester(repo: PlanningRequestsRepo, semester_id: int) -> Semester:
        semester = await repo.semester.get_semester(semester_id)
        if semester is None:
            raise SemesterNotFoundError(semester_id)
        return semester

    async def list_semesters(self, repo: PlanningRequestsRepo, user: User) -> Sequence[Semester]:
        """Every semester ordered by start date"""
        require_role(user, *ALL_ROLES)
        return await repo.semester.get_semesters()

    async def create_semester(
        self,
        repo: PlanningRequestsRepo,
        user: User,
        name: str,
        start_date: date,
        end_date: date,
    ) -> Semester:
        """
        Creates a semester

        Raises:
            InvalidSemesterError: Empty name or start not before end
        """
        require_role(user, *MANAGER_ROLES)
        name = name.strip()
        if not name:
            raise InvalidSemesterError("Semester name is required")
        if start_date >= end_date:
            raise InvalidSemesterError(
                f"Semester start {start_date:%d.%m.%Y} must be before its end {end_date:%d.%m.%Y}"
            )

        semester = await repo.semester.add_semester(name, start_date, end_date)
        if semester is None:
            raise InvalidSemesterError(
                f"Semester {html.escape(name, quote=False)} could not be created"
            )
        logger.info(f"[Planning] Semester {semester.id} {name} created by {user.user_id}")
        return semester

    async def get_semester(self, repo: PlanningRequestsRepo, user: User, semester_id: int) -> Semester:
        require_role(user, *ALL_ROLES)
        return await self._get_semester(repo, semester_id)

    async def get_semester_schedule(
        self, repo: PlanningRequestsRepo, user: User, semester_id: int
    ) -> List[ScheduleEntryView]:
        """Every entry of a semester"""
        require_role(user, *MANAGER_ROLES)
        await self._get_semester(repo, semester_id)
        entries = await repo.entry.get_entries(semester_id)
        return [entry_view(entry) for entry in entries]

    async def get_staff_schedule(
        self,
        repo: PlanningRequestsRepo,
        user: User,
        semester_id: int,
        staff_id: Optional[int] = None,
    ) -> List[ScheduleEntryView]:
        """
        Entries of one staff member

        Staff users only see their own schedule, staff_id is then ignored.

        Raises:
            AccessDeniedError: The user is neither a manager nor a linked staff member
            PlanningNotFoundError: Unknown staff member
        """
        require_role(user, *MANAGER_ROLES, Role.STAFF)
        await self._get_semester(repo, semester_id)

        if is_manager(user) and staff_id is not None:
            staff = await repo.roster.get_staff_member(staff_id=staff_id)
        else:
            staff = await repo.roster.get_staff_member(user_id=user.user_id)
            if staff is None and not is_manager(user):
                raise AccessDeniedError("Your account is not linked to a staff member")
        if staff is None:
            raise PlanningNotFoundError("Staff member not found")

        entries = await repo.entry.get_entries(semester_id, staff_id=staff.id)
        return [entry_view(entry) for entry in entries]

    async def get_child_schedule(
        self, repo: PlanningRequestsRepo, user: User, semester_id: int, child_id: int
    ) -> List[ScheduleEntryView]:
        """
        Entries of one child, with closure markers and confirmed events

        Events registered as PAID or FREE within the semester are added.

        Raises:
            AccessDeniedError: The user is neither a manager nor the child's parent
            PlanningNotFoundError: Unknown child
        """
        require_role(user, *MANAGER_ROLES, Role.PARENT)
        semester = await self._get_semester(repo, semester_id)

        child = await repo.roster.get_child(child_id)
        if child is None:
            raise PlanningNotFoundError(f"Child {child_id} not found")
        if not is_manager(user) and child.parent_user_id != user.user_id:
            raise AccessDeniedError("You can only see the schedule of your own children")

        views = [
            entry_view(entry)
            for entry in await repo.entry.get_child_entries(semester_id, child_id)
        ]

        closure_days = set()
        for entry in await repo.entry.get_closure_entries(
            semester_id, [kind.value for kind in ClosureKind]
        ):
            key = (entry.start_time.date(), entry.activity)
            if key in closure_days:
                continue
            closure_days.add(key)
            views.append(
                ScheduleEntryView(
                    id=None,
                    staff_id=entry.staff_id,
                    staff_name="",
                    day_of_week=entry.day_of_week,
                    start_time=entry.start_time,
                    end_time=entry.end_time,
                    activity=entry.activity,
                )
            )

        registrations = await repo.event.get_child_registrations(
            child_id, semester.start_date, semester.end_date
        )
        for registration in registrations:
            event = registration.event
            views.append(
                ScheduleEntryView(
                    id=None,
                    staff_id=0,
                    staff_name="",
                    day_of_week=event.event_date.isoweekday(),
                    start_time=datetime.combine(event.event_date, event.start_time),
                    end_time=datetime.combine(event.event_date, event.end_time),
                    activity=html.escape(event.title, quote=True),
                    children=(child.fullname,),
                    is_event=True,
                )
            )

        views.sort(key=lambda view: view.start_time)
        return views

    async def preview_document(
        self, user: User, semester_id: int, content: bytes
    ) -> ImportResult:
        """Validated projection of a workbook, nothing is written"""
        require_role(user, *MANAGER_ROLES)
        return await self.importer.preview(semester_id, content)

    async def import_document(
        self,
        user: User,
        semester_id: int,
        content: bytes,
        file_name: Optional[str] = None,
    ) -> ImportResult:
        """Replaces the entries of a semester with a workbook projection"""
        require_role(user, *MANAGER_ROLES)
        return await self.importer.import_document(
            semester_id, content, file_name=file_name, uploaded_by=user.user_id
        )

    async def submit_semester(
        self, repo: PlanningRequestsRepo, user: User, semester_id: int
    ) -> Semester:
        """
        Locks a semester once every staff member has at least one entry

        Raises:
            IncompletePlanningError: Some staff members have no entry
        """
        require_role(user, *MANAGER_ROLES)
        # Waits for a running import of the semester
        async with self.importer.semester_lock(semester_id):
            semester = await self._get_semester(repo, semester_id)

            scheduled = await repo.entry.get_scheduled_staff_ids(semester_id)
            missing = [
                staff.fullname
                for staff in await repo.roster.get_staff_members()
                if staff.id not in scheduled
            ]
            if missing:
                raise IncompletePlanningError(missing)

            if semester.is_locked:
                return semester

            submitted = await repo.semester.mark_submitted(semester, self.now())
        if submitted is None:
            raise PlanningNotFoundError(f"Semester {semester_id} could not be submitted")
        logger.info(f"[Planning] Semester {semester_id} submitted by {user.user_id}")
        return submitted

    async def get_imported_document(
        self, repo: PlanningRequestsRepo, user: User, semester_id: int
    ) -> tuple:
        """
        Last imported workbook of a semester

        Returns:
            Tuple of (file name, content)

        Raises:
            DocumentNotFoundError: Nothing was imported or the archive is gone
        """
        require_role(user, *MANAGER_ROLES)
        await self._get_semester(repo, semester_id)

        upload = await repo.upload.get_latest_upload(semester_id)
        if upload is None:
            raise DocumentNotFoundError(semester_id)
        try:
            content = self.archive.read(upload.file_path)
        except OSError as e:
            logger.error(f"[Planning] Archived workbook {upload.file_path} unreadable: {e}")
            raise DocumentNotFoundError(semester_id)
        return upload.file_name, content

    async def cancel_entry(
        self, user: User, entry_id: int, cancel: bool = True
    ) -> ScheduleEntryView:
        require_role(user, *MANAGER_ROLES)
        return await self.mutator.cancel_entry(entry_id, cancel)

    async def reassign_children(self, user: User, source_id: int, target_id: int) -> int:
        require_role(user, *MANAGER_ROLES)
        return await self.mutator.reassign_children(source_id, target_id)

    async def reassign_child(
        self, user: User, source_id: int, child_id: int, target_id: int
    ) -> None:
        require_role(user, *MANAGER_ROLES)
        await self.mutator.reassign_child(source_id, child_id, target_id)

    async def find_alternatives(self, user: User, entry_id: int) -> List[ScheduleEntryView]:
        require_role(user, *MANAGER_ROLES)
        return await self.mutator.find_alternatives(entry_id)

    async def get_transferred_children(
        self, user: User, entry_id: int
    ) -> List[TransferredChild]:
        require_role(user, *MANAGER_ROLES)
        return await self.mutator.get_transferred_children(entry_id)

    async def get_parent_children(self, repo: PlanningRequestsRepo, user: User):
        """Children of a parent, every child for managers"""
        require_role(user, *MANAGER_ROLES, Role.PARENT)
        if is_manager(user):
            return await repo.roster.get_children()
        return await repo.roster.get_parent_children(user.user_id)
