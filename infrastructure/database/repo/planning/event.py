import logging
from datetime import date
from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from infrastructure.database.models import Event, EventRegistration
from infrastructure.database.repo.base import BaseRepo

logger = logging.getLogger(__name__)


class EventRepo(BaseRepo):
    """Read-only access to one-off events and their registrations."""

    async def get_child_registrations(
        self,
        child_id: int,
        start_date: date,
        end_date: date,
        statuses: Iterable[str] = ("PAID", "FREE"),
    ) -> Sequence[EventRegistration]:
        """
        Get the event registrations of a child within a date range

        Args:
            child_id: Child identifier
            start_date: First day of the range
            end_date: Last day of the range (inclusive)
            statuses: Accepted payment statuses

        Returns:
            List of EventRegistration objects with their event loaded
        """
        query = (
            select(EventRegistration)
            .join(Event, Event.id == EventRegistration.event_id)
            .where(
                EventRegistration.child_id == child_id,
                EventRegistration.payment_status.in_(list(statuses)),
                Event.event_date >= start_date,
                Event.event_date <= end_date,
            )
            .order_by(Event.event_date, Event.start_time)
        )
        try:
            result = await self.session.execute(query)
            return result.unique().scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"[DB] Error fetching event registrations of child {child_id}: {e}")
            return []
