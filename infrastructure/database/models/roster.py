from typing import Optional

from sqlalchemy import BIGINT, ForeignKey, Integer, Unicode
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TableNameMixin


class StaffMember(Base, TableNameMixin):
    """
    Model representing a staff member (educator) profile.

    Attributes:
        id (Mapped[int]): Unique staff identifier.
        user_id (Mapped[Optional[int]]): Linked bot user, if any.
        first_name (Mapped[str]): First name.
        last_name (Mapped[str]): Last name.
    """

    __tablename__ = "staff_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[Optional[int]] = mapped_column(
        BIGINT, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True
    )
    first_name: Mapped[str] = mapped_column(Unicode(100))
    last_name: Mapped[str] = mapped_column(Unicode(100))

    @property
    def fullname(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<StaffMember {self.id} {self.first_name} {self.last_name}>"


class Child(Base, TableNameMixin):
    """
    Model representing a child enrolled in the institution.

    Attributes:
        id (Mapped[int]): Unique child identifier.
        first_name (Mapped[str]): First name.
        last_name (Mapped[str]): Last name.
        parent_user_id (Mapped[Optional[int]]): Bot user of the parent.
    """

    __tablename__ = "children"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(Unicode(100))
    last_name: Mapped[str] = mapped_column(Unicode(100))
    parent_user_id: Mapped[Optional[int]] = mapped_column(
        BIGINT, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True
    )

    @property
    def fullname(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<Child {self.id} {self.first_name} {self.last_name}>"
