from .base import Base
from .event import Event, EventRegistration
from .planning.planning_upload import PlanningUpload
from .planning.schedule_entry import EntryChild, ScheduleEntry
from .planning.semester import Semester
from .roster import Child, StaffMember
from .user import User

__all__ = [
    "Base",
    "Child",
    "EntryChild",
    "Event",
    "EventRegistration",
    "PlanningUpload",
    "ScheduleEntry",
    "Semester",
    "StaffMember",
    "User",
]
