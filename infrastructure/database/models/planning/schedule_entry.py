from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, SmallInteger, Unicode
from sqlalchemy.orm import Mapped, mapped_column, relationship

from infrastructure.database.models.base import Base, TableNameMixin
from infrastructure.database.models.roster import Child, StaffMember


class ScheduleEntry(Base, TableNameMixin):
    """
    Model representing one concrete dated occurrence of a planning slot.

    Closure placeholders (public holidays, vacations) are stored in the
    same table with no children and zero duration.

    Attributes:
        id (Mapped[int]): Unique entry identifier.
        semester_id (Mapped[int]): Owning semester.
        staff_id (Mapped[int]): Staff member running the slot.
        day_of_week (Mapped[int]): ISO weekday of the entry (1 = Monday).
        start_time (Mapped[datetime]): Local wall-clock start.
        end_time (Mapped[datetime]): Local wall-clock end.
        activity (Mapped[str]): HTML-escaped activity label.

    Methods:
        __repr__(): Returns a string representation of the ScheduleEntry object.
    """

    __tablename__ = "schedule_entries"
    __table_args__ = (
        Index("ix_schedule_entries_semester_staff", "semester_id", "staff_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    semester_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("semesters.id", ondelete="CASCADE"), nullable=False
    )
    staff_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("staff_members.id", ondelete="CASCADE"), nullable=False
    )
    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    activity: Mapped[str] = mapped_column(Unicode(255), nullable=False)

    staff: Mapped[StaffMember] = relationship(lazy="joined")
    entry_children: Mapped[List["EntryChild"]] = relationship(
        back_populates="entry",
        foreign_keys="EntryChild.entry_id",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return (
            f"<ScheduleEntry {self.id} semester={self.semester_id} staff={self.staff_id} "
            f"{self.start_time}-{self.end_time} {self.activity}>"
        )


class EntryChild(Base, TableNameMixin):
    """
    Link between a schedule entry and a child.

    Attributes:
        entry_id (Mapped[int]): Entry the child currently attends.
        child_id (Mapped[int]): Linked child.
        original_entry_id (Mapped[Optional[int]]): Entry the child was moved
            away from by a reassignment, None when the link is original.
    """

    __tablename__ = "entry_children"

    entry_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("schedule_entries.id", ondelete="CASCADE"),
        primary_key=True,
    )
    child_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("children.id", ondelete="CASCADE"), primary_key=True
    )
    original_entry_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("schedule_entries.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    entry: Mapped[ScheduleEntry] = relationship(
        back_populates="entry_children", foreign_keys=[entry_id]
    )
    child: Mapped[Child] = relationship(lazy="joined")

    def __repr__(self):
        return f"<EntryChild entry={self.entry_id} child={self.child_id} origin={self.original_entry_id}>"
