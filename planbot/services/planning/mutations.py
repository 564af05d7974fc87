"""
Manual corrections of imported entries: cancellation and child reassignment.
"""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from infrastructure.database.models import EntryChild, ScheduleEntry
from infrastructure.database.repo.requests import PlanningRequestsRepo

from .constants import CANCELLED_PREFIX
from .exceptions import (
    ChildOverlapError,
    DuplicateLinkError,
    EntryNotFoundError,
    LinkNotFoundError,
    ReassignmentError,
)
from .formatters import entry_view, transferred_child
from .locks import KeyedLocks
from .models import ClosureKind, ScheduleEntryView, TransferredChild

logger = logging.getLogger(__name__)

CLOSURE_LABELS = tuple(kind.value for kind in ClosureKind)


def is_cancelled(activity: str) -> bool:
    return activity.startswith(CANCELLED_PREFIX)


def cancelled_label(activity: str) -> str:
    return activity if is_cancelled(activity) else f"{CANCELLED_PREFIX}{activity}"


def active_label(activity: str) -> str:
    return activity[len(CANCELLED_PREFIX) :] if is_cancelled(activity) else activity


def moved_origin(link: EntryChild, source_id: int, target_id: int) -> Optional[int]:
    """Origin recorded on a link moved from source to target"""
    origin = link.original_entry_id or source_id
    return None if origin == target_id else origin


class EntryMutator:
    """
    Cancellation, reactivation and reassignment of schedule entries

    Every operation runs in its own transaction. Operations touching the same
    entries are serialised.
    """

    def __init__(self, session_pool: async_sessionmaker[AsyncSession]):
        self.session_pool = session_pool
        self._locks = KeyedLocks()

    @staticmethod
    async def _get_entry(repo: PlanningRequestsRepo, entry_id: int) -> ScheduleEntry:
        entry = await repo.entry.get_entry(entry_id)
        if entry is None:
            raise EntryNotFoundError(entry_id)
        return entry

    async def cancel_entry(self, entry_id: int, cancel: bool = True) -> ScheduleEntryView:
        """
        Cancels or reactivates an entry

        Both directions are idempotent. Reactivation brings back the children
        that were reassigned away from the entry.

        Args:
            entry_id: Entry identifier
            cancel: True to cancel, False to reactivate

        Returns:
            Updated entry

        Raises:
            EntryNotFoundError: Unknown entry
        """
        async with self._locks.acquire(entry_id):
            async with self.session_pool() as session:
                async with session.begin():
                    repo = PlanningRequestsRepo(session)
                    entry = await self._get_entry(repo, entry_id)

                    if cancel:
                        entry.activity = cancelled_label(entry.activity)
                    elif is_cancelled(entry.activity):
                        entry.activity = active_label(entry.activity)
                        restored = await self._restore_children(repo, entry)
                        logger.info(
                            f"[Planning] Entry {entry_id} reactivated, {restored} children restored"
                        )

                    await session.flush()
                    entry = await self._get_entry(repo, entry_id)
                    view = entry_view(entry)

        logger.info(f"[Planning] Entry {entry_id} {'cancelled' if cancel else 'active'}")
        return view

    async def _restore_children(self, repo: PlanningRequestsRepo, entry: ScheduleEntry) -> int:
        """Moves transferred children back to their original entry"""
        links = await repo.entry.get_transferred_links(entry.id)
        current = {link.child_id for link in await repo.entry.get_links(entry.id)}

        restored = 0
        for link in links:
            if link.entry_id == entry.id:
                # Child already came back, only the origin is stale
                await repo.entry.move_link(link.child_id, entry.id, entry.id, None)
                continue
            if link.child_id in current:
                await repo.entry.delete_link(link.entry_id, link.child_id)
                continue
            await repo.entry.move_link(link.child_id, link.entry_id, entry.id, None)
            current.add(link.child_id)
            restored += 1
        return restored

    async def _check_target(
        self,
        repo: PlanningRequestsRepo,
        source: ScheduleEntry,
        target: ScheduleEntry,
        child_ids: List[int],
    ) -> None:
        if target.activity in CLOSURE_LABELS:
            raise ReassignmentError(
                f"Entry {target.id} is a closure marker and cannot receive children"
            )

        overlapping = await repo.entry.get_overlapping_child_ids(
            child_ids,
            target.start_time,
            target.end_time,
            exclude_entry_ids=[source.id, target.id],
            cancelled_prefix=CANCELLED_PREFIX,
        )
        if overlapping:
            raise ChildOverlapError(overlapping, target.id)

    async def reassign_children(self, source_id: int, target_id: int) -> int:
        """
        Moves every child of a source entry to a target entry

        Children already linked to the target are not duplicated. The source
        is cancelled when it is still active.

        Args:
            source_id: Entry the children leave
            target_id: Entry the children join

        Returns:
            Number of children added to the target

        Raises:
            ReassignmentError: Source and target are the same entry
            EntryNotFoundError: Unknown entry
            ChildOverlapError: A child would attend two overlapping entries
        """
        if source_id == target_id:
            raise ReassignmentError("Source and target entries must differ")

        async with self._locks.acquire(source_id, target_id):
            async with self.session_pool() as session:
                async with session.begin():
                    repo = PlanningRequestsRepo(session)
                    source = await self._get_entry(repo, source_id)
                    target = await self._get_entry(repo, target_id)

                    links = list(source.entry_children)
                    on_target = {link.child_id for link in target.entry_children}
                    moving = [link for link in links if link.child_id not in on_target]

                    await self._check_target(
                        repo, source, target, [link.child_id for link in moving]
                    )

                    for link in links:
                        if link.child_id in on_target:
                            await repo.entry.delete_link(source_id, link.child_id)
                        else:
                            await repo.entry.move_link(
                                link.child_id,
                                source_id,
                                target_id,
                                moved_origin(link, source_id, target_id),
                            )

                    source.activity = cancelled_label(source.activity)

        logger.info(
            f"[Planning] {len(moving)} children moved from entry {source_id} to {target_id}"
        )
        return len(moving)

    async def reassign_child(self, source_id: int, child_id: int, target_id: int) -> None:
        """
        Moves one child from a source entry to a target entry

        Args:
            source_id: Entry the child leaves
            child_id: Child identifier
            target_id: Entry the child joins

        Raises:
            ReassignmentError: Source and target are the same entry
            EntryNotFoundError: Unknown entry
            LinkNotFoundError: The child is not linked to the source
            DuplicateLinkError: The child is already linked to the target
            ChildOverlapError: The child would attend two overlapping entries
        """
        if source_id == target_id:
            raise ReassignmentError("Source and target entries must differ")

        async with self._locks.acquire(source_id, target_id):
            async with self.session_pool() as session:
                async with session.begin():
                    repo = PlanningRequestsRepo(session)
                    source = await self._get_entry(repo, source_id)
                    target = await self._get_entry(repo, target_id)

                    link = await repo.entry.get_link(source_id, child_id)
                    if link is None:
                        raise LinkNotFoundError(child_id, source_id)
                    if await repo.entry.get_link(target_id, child_id) is not None:
                        raise DuplicateLinkError(child_id, target_id)

                    await self._check_target(repo, source, target, [child_id])
                    await repo.entry.move_link(
                        child_id, source_id, target_id, moved_origin(link, source_id, target_id)
                    )

        logger.info(f"[Planning] Child {child_id} moved from entry {source_id} to {target_id}")

    async def find_alternatives(self, entry_id: int) -> List[ScheduleEntryView]:
        """
        Active entries at the same time as an entry, run by other staff members

        Args:
            entry_id: Reference entry

        Returns:
            List of entries children can be moved to
        """
        async with self.session_pool() as session:
            repo = PlanningRequestsRepo(session)
            entry = await self._get_entry(repo, entry_id)
            alternatives = await repo.entry.get_alternatives(entry, CANCELLED_PREFIX)
            return [entry_view(alternative) for alternative in alternatives]

    async def get_transferred_children(self, entry_id: int) -> List[TransferredChild]:
        """
        Children reassigned away from an entry

        Args:
            entry_id: Original entry

        Returns:
            One record per moved child with its current entry
        """
        async with self.session_pool() as session:
            repo = PlanningRequestsRepo(session)
            await self._get_entry(repo, entry_id)
            links = await repo.entry.get_transferred_links(entry_id)
            return [transferred_child(link) for link in links]
