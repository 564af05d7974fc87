import logging
from datetime import date, datetime
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from infrastructure.database.models import Semester
from infrastructure.database.repo.base import BaseRepo

logger = logging.getLogger(__name__)


class SemesterRepo(BaseRepo):
    async def get_semesters(self) -> Sequence[Semester]:
        """
        Get every semester ordered by start date

        Returns:
            List of Semester objects
        """
        try:
            result = await self.session.execute(
                select(Semester).order_by(Semester.start_date)
            )
            return result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"[DB] Error fetching semesters: {e}")
            return []

    async def get_semester(self, semester_id: int) -> Optional[Semester]:
        """
        Find a semester by id

        Args:
            semester_id: Semester identifier

        Returns:
            Semester object or None
        """
        try:
            return await self.session.get(Semester, semester_id)
        except SQLAlchemyError as e:
            logger.error(f"[DB] Error fetching semester {semester_id}: {e}")
            return None

    async def add_semester(
        self, name: str, start_date: date, end_date: date
    ) -> Optional[Semester]:
        """
        Create a semester

        Args:
            name: Semester label
            start_date: First day
            end_date: Last day (inclusive)

        Returns:
            New Semester object or None on error
        """
        semester = Semester(name=name, start_date=start_date, end_date=end_date)
        self.session.add(semester)
        try:
            await self.session.commit()
            await self.session.refresh(semester)
            return semester
        except SQLAlchemyError as e:
            logger.error(f"[DB] Error creating semester {name}: {e}")
            await self.session.rollback()
            return None

    async def mark_submitted(
        self, semester: Semester, submitted_at: datetime
    ) -> Optional[Semester]:
        """
        Lock a semester after its planning was submitted

        Args:
            semester: Semester to lock
            submitted_at: Submission time

        Returns:
            Updated Semester object or None on error
        """
        semester.submitted_at = submitted_at
        try:
            await self.session.commit()
            return semester
        except SQLAlchemyError as e:
            logger.error(f"[DB] Error submitting semester {semester.id}: {e}")
            await self.session.rollback()
            return None
