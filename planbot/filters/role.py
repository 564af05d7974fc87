"""Role filters."""

from aiogram.filters import BaseFilter
from aiogram.types import Message

from infrastructure.database.models import User
from planbot.misc.dicts import MANAGER_ROLES, Role


class ManagerFilter(BaseFilter):
    """Director or service manager filter.

    Managers administer semesters and their planning.
    """

    async def __call__(self, obj: Message, user: User, **kwargs) -> bool:
        """Checks whether the user manages the planning.

        Args:
            obj: Incoming message or callback.
            user: User from the database.
            **kwargs: Additional arguments.

        Returns:
            True for directors, service managers and root, False otherwise.
        """
        if user is None:
            return False

        return user.role in {int(role) for role in MANAGER_ROLES + (Role.ROOT,)}


class StaffFilter(BaseFilter):
    """Educator role filter."""

    async def __call__(self, obj: Message, user: User, **kwargs) -> bool:
        if user is None:
            return False

        return user.role == Role.STAFF


class ParentFilter(BaseFilter):
    """Parent role filter."""

    async def __call__(self, obj: Message, user: User, **kwargs) -> bool:
        if user is None:
            return False

        return user.role == Role.PARENT
