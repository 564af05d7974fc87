from typing import Optional

from sqlalchemy import BIGINT, Integer, Unicode
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TableNameMixin


class User(Base, TableNameMixin):
    """
    Model representing an authorised bot user.

    Rows are owned by the identity service; the planning engine only reads
    them to resolve roles.

    Attributes:
        user_id (Mapped[int]): Telegram identifier of the user.
        username (Mapped[Optional[str]]): Telegram username.
        fullname (Mapped[str]): Display name.
        role (Mapped[int]): Role of the user, see planbot.misc.dicts.Role.

    Methods:
        __repr__(): Returns a string representation of the User object.
    """

    __tablename__ = "users"

    user_id: Mapped[int] = mapped_column(BIGINT, primary_key=True, autoincrement=False)
    username: Mapped[Optional[str]] = mapped_column(Unicode(64), nullable=True)
    fullname: Mapped[str] = mapped_column(Unicode(255))
    role: Mapped[int] = mapped_column(Integer)

    def __repr__(self):
        return f"<User {self.user_id} {self.username} {self.fullname} {self.role}>"
