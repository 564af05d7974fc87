import logging
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from infrastructure.database.models import User
from infrastructure.database.repo.base import BaseRepo

logger = logging.getLogger(__name__)


class UserRepo(BaseRepo):
    async def get_user(
        self,
        user_id: Optional[int] = None,
        username: Optional[str] = None,
    ) -> Optional[User]:
        """
        Find a user by filters

        Args:
            user_id: Telegram user identifier
            username: Telegram username

        Returns:
            User object or None
        """
        filters = []

        if user_id:
            filters.append(User.user_id == user_id)
        if username:
            filters.append(User.username == username)

        if not filters:
            raise ValueError("At least one parameter must be provided to get_user()")

        query = select(User).where(*filters)

        try:
            result = await self.session.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"[DB] Error fetching user: {e}")
            return None

    async def get_users(self, roles: Optional[int | list[int]] = None) -> Sequence[User]:
        """
        Get users, optionally filtered by role(s)

        Args:
            roles: Single role or list of roles

        Returns:
            List of User objects
        """
        query = select(User).order_by(User.fullname)
        if isinstance(roles, int):
            query = query.where(User.role == roles)
        elif roles:
            query = query.where(User.role.in_(roles))

        try:
            result = await self.session.execute(query)
            return result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"[DB] Error fetching users: {e}")
            return []
