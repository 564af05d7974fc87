import logging
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from infrastructure.database.models import Child, StaffMember
from infrastructure.database.repo.base import BaseRepo

logger = logging.getLogger(__name__)


class RosterRepo(BaseRepo):
    """Read-only access to the staff and children reference lists."""

    async def get_staff_members(self) -> Sequence[StaffMember]:
        """
        Get every staff member ordered by name

        Returns:
            List of StaffMember objects
        """
        query = select(StaffMember).order_by(StaffMember.last_name, StaffMember.first_name)
        try:
            result = await self.session.execute(query)
            return result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"[DB] Error fetching staff members: {e}")
            return []

    async def get_children(self) -> Sequence[Child]:
        """
        Get every child ordered by name

        Returns:
            List of Child objects
        """
        query = select(Child).order_by(Child.last_name, Child.first_name)
        try:
            result = await self.session.execute(query)
            return result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"[DB] Error fetching children: {e}")
            return []

    async def get_staff_member(
        self, staff_id: Optional[int] = None, user_id: Optional[int] = None
    ) -> Optional[StaffMember]:
        """
        Find a staff member by id or by linked bot user

        Args:
            staff_id: Staff identifier
            user_id: Telegram identifier of the linked user

        Returns:
            StaffMember object or None
        """
        filters = []
        if staff_id:
            filters.append(StaffMember.id == staff_id)
        if user_id:
            filters.append(StaffMember.user_id == user_id)

        if not filters:
            raise ValueError(
                "At least one parameter must be provided to get_staff_member()"
            )

        try:
            result = await self.session.execute(select(StaffMember).where(*filters))
            return result.scalars().first()
        except SQLAlchemyError as e:
            logger.error(f"[DB] Error fetching staff member: {e}")
            return None

    async def get_child(self, child_id: int) -> Optional[Child]:
        """
        Find a child by id

        Args:
            child_id: Child identifier

        Returns:
            Child object or None
        """
        try:
            return await self.session.get(Child, child_id)
        except SQLAlchemyError as e:
            logger.error(f"[DB] Error fetching child {child_id}: {e}")
            return None

    async def get_parent_children(self, parent_user_id: int) -> Sequence[Child]:
        """
        Get children of a parent

        Args:
            parent_user_id: Telegram identifier of the parent

        Returns:
            List of Child objects
        """
        query = (
            select(Child)
            .where(Child.parent_user_id == parent_user_id)
            .order_by(Child.first_name)
        )
        try:
            result = await self.session.execute(query)
            return result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"[DB] Error fetching children of {parent_user_id}: {e}")
            return []
