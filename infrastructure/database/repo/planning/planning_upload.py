import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from infrastructure.database.models import PlanningUpload
from infrastructure.database.repo.base import BaseRepo

logger = logging.getLogger(__name__)


class PlanningUploadRepo(BaseRepo):
    async def log_upload(
        self,
        semester_id: int,
        file_name: str,
        file_path: str,
        file_size: int,
        uploaded_by_user_id: Optional[int] = None,
    ) -> PlanningUpload:
        """
        Record an archived planning workbook. Flushes only, the caller commits

        Args:
            semester_id: Semester the workbook was imported into
            file_name: Original file name
            file_path: Path of the archived copy
            file_size: File size in bytes
            uploaded_by_user_id: Telegram identifier of the importer

        Returns:
            New PlanningUpload object
        """
        upload = PlanningUpload(
            semester_id=semester_id,
            file_name=file_name,
            file_path=file_path,
            file_size=file_size,
            uploaded_by_user_id=uploaded_by_user_id,
        )
        self.session.add(upload)
        await self.session.flush()
        return upload

    async def get_latest_upload(self, semester_id: int) -> Optional[PlanningUpload]:
        """
        Get the last workbook imported into a semester

        Args:
            semester_id: Semester identifier

        Returns:
            PlanningUpload object or None
        """
        query = (
            select(PlanningUpload)
            .where(PlanningUpload.semester_id == semester_id)
            .order_by(PlanningUpload.uploaded_at.desc(), PlanningUpload.id.desc())
            .limit(1)
        )
        try:
            result = await self.session.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"[DB] Error fetching latest upload of semester {semester_id}: {e}")
            return None
