from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.repo.planning.event import EventRepo
from infrastructure.database.repo.planning.planning_upload import PlanningUploadRepo
from infrastructure.database.repo.planning.roster import RosterRepo
from infrastructure.database.repo.planning.schedule_entry import ScheduleEntryRepo
from infrastructure.database.repo.planning.semester import SemesterRepo
from infrastructure.database.repo.user import UserRepo


@dataclass
class PlanningRequestsRepo:
    """
    Repository for handling planning database operations. This class holds all the repositories for the planning models.

    Every repository shares the same session, so they can be combined inside one transaction.
    """

    session: AsyncSession

    @property
    def user(self) -> UserRepo:
        """
        The User repository is required to resolve bot users and their roles.
        """
        return UserRepo(self.session)

    @property
    def roster(self) -> RosterRepo:
        """
        The Roster repository gives the staff and children reference lists.
        """
        return RosterRepo(self.session)

    @property
    def semester(self) -> SemesterRepo:
        """
        The Semester repository is required to manage semesters.
        """
        return SemesterRepo(self.session)

    @property
    def entry(self) -> ScheduleEntryRepo:
        """
        The ScheduleEntry repository is required to manage schedule entries and child links.
        """
        return ScheduleEntryRepo(self.session)

    @property
    def upload(self) -> PlanningUploadRepo:
        """
        The PlanningUpload repository keeps the log of imported workbooks.
        """
        return PlanningUploadRepo(self.session)

    @property
    def event(self) -> EventRepo:
        """
        The Event repository gives the events children registered to.
        """
        return EventRepo(self.session)
