import logging
from datetime import datetime
from typing import Iterable, Optional, Sequence, Set

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from infrastructure.database.models import EntryChild, ScheduleEntry
from infrastructure.database.repo.base import BaseRepo

logger = logging.getLogger(__name__)


class ScheduleEntryRepo(BaseRepo):
    """Schedule entries and their child links.

    Write methods only flush: the caller owns the transaction, so that an
    import or a reassignment commits or rolls back as a whole.
    """

    async def get_entry(self, entry_id: int) -> Optional[ScheduleEntry]:
        """
        Find an entry by id, reloading its child links

        Args:
            entry_id: Entry identifier

        Returns:
            ScheduleEntry object or None
        """
        query = (
            select(ScheduleEntry)
            .where(ScheduleEntry.id == entry_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return result.unique().scalar_one_or_none()

    async def get_entries(
        self, semester_id: int, staff_id: Optional[int] = None
    ) -> Sequence[ScheduleEntry]:
        """
        Get the entries of a semester, optionally for one staff member

        Args:
            semester_id: Semester identifier
            staff_id: Staff identifier

        Returns:
            List of ScheduleEntry objects ordered by start time
        """
        filters = [ScheduleEntry.semester_id == semester_id]
        if staff_id:
            filters.append(ScheduleEntry.staff_id == staff_id)

        query = (
            select(ScheduleEntry)
            .where(*filters)
            .order_by(ScheduleEntry.start_time, ScheduleEntry.staff_id)
        )
        try:
            result = await self.session.execute(query)
            return result.unique().scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"[DB] Error fetching entries of semester {semester_id}: {e}")
            return []

    async def get_child_entries(
        self, semester_id: int, child_id: int
    ) -> Sequence[ScheduleEntry]:
        """
        Get the entries of a semester a child is linked to

        Args:
            semester_id: Semester identifier
            child_id: Child identifier

        Returns:
            List of ScheduleEntry objects ordered by start time
        """
        query = (
            select(ScheduleEntry)
            .join(EntryChild, EntryChild.entry_id == ScheduleEntry.id)
            .where(
                ScheduleEntry.semester_id == semester_id,
                EntryChild.child_id == child_id,
            )
            .order_by(ScheduleEntry.start_time)
        )
        try:
            result = await self.session.execute(query)
            return result.unique().scalars().all()
        except SQLAlchemyError as e:
            logger.error(
                f"[DB] Error fetching entries of child {child_id} in semester {semester_id}: {e}"
            )
            return []

    async def get_scheduled_staff_ids(self, semester_id: int) -> Set[int]:
        """
        Get the ids of staff members having at least one entry in a semester

        Args:
            semester_id: Semester identifier

        Returns:
            Set of staff identifiers
        """
        query = (
            select(ScheduleEntry.staff_id)
            .where(ScheduleEntry.semester_id == semester_id)
            .distinct()
        )
        try:
            result = await self.session.execute(query)
            return set(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"[DB] Error fetching staff of semester {semester_id}: {e}")
            return set()

    async def count_entries(self, semester_id: int) -> int:
        """Count the entries of a semester."""
        result = await self.session.execute(
            select(func.count(ScheduleEntry.id)).where(
                ScheduleEntry.semester_id == semester_id
            )
        )
        return result.scalar_one()

    async def delete_semester_entries(self, semester_id: int) -> int:
        """
        Delete every entry of a semester together with its child links

        Args:
            semester_id: Semester identifier

        Returns:
            Number of deleted entries
        """
        semester_entry_ids = select(ScheduleEntry.id).where(
            ScheduleEntry.semester_id == semester_id
        )
        await self.session.execute(
            delete(EntryChild)
            .where(EntryChild.entry_id.in_(semester_entry_ids))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            delete(ScheduleEntry)
            .where(ScheduleEntry.semester_id == semester_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def add_entries(self, entries: Iterable[ScheduleEntry]) -> None:
        """
        Add entries (with their child links) and flush them

        Args:
            entries: New ScheduleEntry objects
        """
        self.session.add_all(list(entries))
        await self.session.flush()

    async def get_link(self, entry_id: int, child_id: int) -> Optional[EntryChild]:
        """
        Find the link between an entry and a child

        Args:
            entry_id: Entry identifier
            child_id: Child identifier

        Returns:
            EntryChild object or None
        """
        result = await self.session.execute(
            select(EntryChild).where(
                EntryChild.entry_id == entry_id, EntryChild.child_id == child_id
            )
        )
        return result.unique().scalar_one_or_none()

    async def get_links(self, entry_id: int) -> Sequence[EntryChild]:
        """Get the child links of an entry."""
        result = await self.session.execute(
            select(EntryChild).where(EntryChild.entry_id == entry_id)
        )
        return result.unique().scalars().all()

    async def get_transferred_links(self, original_entry_id: int) -> Sequence[EntryChild]:
        """
        Get the links of children moved away from an entry

        Args:
            original_entry_id: Entry the children were reassigned from

        Returns:
            List of EntryChild objects
        """
        result = await self.session.execute(
            select(EntryChild)
            .where(EntryChild.original_entry_id == original_entry_id)
            .options(selectinload(EntryChild.entry))
        )
        return result.unique().scalars().all()

    async def move_link(
        self,
        child_id: int,
        source_entry_id: int,
        target_entry_id: int,
        original_entry_id: Optional[int],
    ) -> None:
        """
        Move a child link from one entry to another

        Args:
            child_id: Child identifier
            source_entry_id: Entry currently holding the link
            target_entry_id: Entry receiving the link
            original_entry_id: Origin recorded on the moved link
        """
        await self.session.execute(
            update(EntryChild)
            .where(
                EntryChild.entry_id == source_entry_id,
                EntryChild.child_id == child_id,
            )
            .values(entry_id=target_entry_id, original_entry_id=original_entry_id)
            .execution_options(synchronize_session=False)
        )

    async def delete_link(self, entry_id: int, child_id: int) -> None:
        """Remove a child link."""
        await self.session.execute(
            delete(EntryChild)
            .where(EntryChild.entry_id == entry_id, EntryChild.child_id == child_id)
            .execution_options(synchronize_session=False)
        )

    async def get_overlapping_child_ids(
        self,
        child_ids: Iterable[int],
        start_time: datetime,
        end_time: datetime,
        exclude_entry_ids: Iterable[int],
        cancelled_prefix: str,
    ) -> Set[int]:
        """
        Find children already attending another active entry in a time range

        Args:
            child_ids: Children to check
            start_time: Range start
            end_time: Range end
            exclude_entry_ids: Entries ignored by the check
            cancelled_prefix: Activity prefix marking cancelled entries

        Returns:
            Set of child identifiers with an overlapping active entry
        """
        child_ids = list(child_ids)
        if not child_ids:
            return set()

        query = (
            select(EntryChild.child_id)
            .join(ScheduleEntry, ScheduleEntry.id == EntryChild.entry_id)
            .where(
                EntryChild.child_id.in_(child_ids),
                ScheduleEntry.id.not_in(list(exclude_entry_ids)),
                ScheduleEntry.start_time < end_time,
                ScheduleEntry.end_time > start_time,
                ScheduleEntry.activity.not_like(f"{cancelled_prefix}%"),
            )
        )
        result = await self.session.execute(query)
        return set(result.scalars().all())

    async def get_alternatives(
        self, entry: ScheduleEntry, cancelled_prefix: str
    ) -> Sequence[ScheduleEntry]:
        """
        Get active entries running at the same time as an entry with another staff member

        Args:
            entry: Reference entry
            cancelled_prefix: Activity prefix marking cancelled entries

        Returns:
            List of ScheduleEntry objects
        """
        query = select(ScheduleEntry).where(
            and_(
                ScheduleEntry.semester_id == entry.semester_id,
                ScheduleEntry.day_of_week == entry.day_of_week,
                ScheduleEntry.start_time == entry.start_time,
                ScheduleEntry.end_time == entry.end_time,
                ScheduleEntry.staff_id != entry.staff_id,
                ScheduleEntry.activity.not_like(f"{cancelled_prefix}%"),
            )
        )
        try:
            result = await self.session.execute(query)
            return result.unique().scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"[DB] Error fetching alternatives of entry {entry.id}: {e}")
            return []

    async def get_closure_entries(
        self, semester_id: int, labels: Iterable[str]
    ) -> Sequence[ScheduleEntry]:
        """
        Get the closure placeholders of a semester

        Args:
            semester_id: Semester identifier
            labels: Activity labels used by closure placeholders

        Returns:
            List of ScheduleEntry objects ordered by date
        """
        query = (
            select(ScheduleEntry)
            .where(
                ScheduleEntry.semester_id == semester_id,
                ScheduleEntry.activity.in_(list(labels)),
            )
            .order_by(ScheduleEntry.start_time)
        )
        try:
            result = await self.session.execute(query)
            return result.unique().scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"[DB] Error fetching closures of semester {semester_id}: {e}")
            return []
