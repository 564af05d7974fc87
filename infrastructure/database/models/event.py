from datetime import date, time

from sqlalchemy import Date, ForeignKey, Integer, String, Time, Unicode
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TableNameMixin


class Event(Base, TableNameMixin):
    """
    Model representing a one-off event (usually a Saturday outing).

    Attributes:
        id (Mapped[int]): Unique event identifier.
        title (Mapped[str]): Event title.
        event_date (Mapped[date]): Day of the event.
        start_time (Mapped[time]): Start time of day.
        end_time (Mapped[time]): End time of day.
    """

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Unicode(255))
    event_date: Mapped[date] = mapped_column("date", Date)
    start_time: Mapped[time] = mapped_column(Time)
    end_time: Mapped[time] = mapped_column(Time)

    def __repr__(self):
        return f"<Event {self.id} {self.title} {self.event_date}>"


class EventRegistration(Base, TableNameMixin):
    """
    Model representing the registration of a child to an event.

    Attributes:
        id (Mapped[int]): Unique registration identifier.
        event_id (Mapped[int]): Registered event.
        child_id (Mapped[int]): Registered child.
        payment_status (Mapped[str]): PENDING, PAID, FREE or CANCELLED.
    """

    __tablename__ = "event_registrations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("events.id", ondelete="CASCADE")
    )
    child_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("children.id", ondelete="CASCADE")
    )
    payment_status: Mapped[str] = mapped_column(String(16), default="PENDING")

    event: Mapped[Event] = relationship(lazy="joined")

    def __repr__(self):
        return f"<EventRegistration {self.id} event={self.event_id} child={self.child_id} {self.payment_status}>"
