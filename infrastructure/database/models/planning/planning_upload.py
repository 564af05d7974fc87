from datetime import datetime
from typing import Optional

from sqlalchemy import BIGINT, TIMESTAMP, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models.base import Base, TableNameMixin


class PlanningUpload(Base, TableNameMixin):
    """
    Model representing an archived planning workbook.

    Attributes:
        id (Mapped[int]): Unique record identifier.
        semester_id (Mapped[int]): Semester the workbook was imported into.
        file_name (Mapped[Optional[str]]): Original file name.
        file_path (Mapped[str]): Path of the archived copy.
        file_size (Mapped[Optional[int]]): File size in bytes.
        uploaded_by_user_id (Mapped[Optional[int]]): User who imported the file.
        uploaded_at (Mapped[datetime]): Import time.

    Methods:
        __repr__(): Returns a string representation of the PlanningUpload object.
    """

    __tablename__ = "planning_uploads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    semester_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("semesters.id", ondelete="CASCADE"), nullable=False
    )
    file_name: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, comment="Original file name"
    )
    file_path: Mapped[str] = mapped_column(
        Text, nullable=False, comment="Archived copy on disk"
    )
    file_size: Mapped[Optional[int]] = mapped_column(
        BIGINT, nullable=True, comment="File size in bytes"
    )
    uploaded_by_user_id: Mapped[Optional[int]] = mapped_column(BIGINT, nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(
        TIMESTAMP, nullable=False, server_default=func.current_timestamp()
    )

    def __repr__(self):
        return (
            f"<PlanningUpload id={self.id} semester_id={self.semester_id} file_name={self.file_name} "
            f"file_size={self.file_size} uploaded_by_user_id={self.uploaded_by_user_id} uploaded_at={self.uploaded_at}>"
        )
