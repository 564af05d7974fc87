from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, Integer, Unicode
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models.base import Base, TableNameMixin, TimestampMixin


class Semester(Base, TableNameMixin, TimestampMixin):
    """
    Model representing an academic semester.

    Attributes:
        id (Mapped[int]): Unique semester identifier.
        name (Mapped[str]): Label shown to users.
        start_date (Mapped[date]): First day of the semester.
        end_date (Mapped[date]): Last day of the semester (inclusive).
        submitted_at (Mapped[Optional[datetime]]): Time the planning was
            submitted and locked, None while it is still a draft.

    Methods:
        __repr__(): Returns a string representation of the Semester object.
    """

    __tablename__ = "semesters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Unicode(100), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True, comment="Planning submission time"
    )

    @property
    def is_locked(self) -> bool:
        return self.submitted_at is not None

    def __repr__(self):
        return f"<Semester {self.id} {self.name} {self.start_date}..{self.end_date}>"
