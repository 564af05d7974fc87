"""
Planning services package: weekly template import, calendar projection and entry corrections.
"""

from .archive import PlanningArchive
from .closures import (
    ClosureCalendar,
    ClosureSource,
    PublicHolidaySource,
    ZoneVacationSource,
    build_closure_calendar,
)
from .exceptions import (
    AccessDeniedError,
    ClosureDataUnavailableError,
    CoverageError,
    ImportTimeoutError,
    MalformedTemplateError,
    PlanningError,
    PlanningNotFoundError,
    PreconditionError,
    ReassignmentError,
    ScheduleConflictError,
    SemesterLockedError,
    TemplateError,
    UnknownReferenceError,
)
from .expander import CalendarExpander
from .formatters import ScheduleFormatter
from .importer import PlanningImporter
from .models import (
    ClosureKind,
    ClosurePeriod,
    ImportResult,
    ProjectedEntry,
    Roster,
    ScheduleEntryView,
    TemplateEntry,
)
from .mutations import EntryMutator
from .service import PlanningService
from .template_parser import TemplateParser

__all__ = [
    # Core classes
    "PlanningService",
    "PlanningImporter",
    "EntryMutator",
    "TemplateParser",
    "CalendarExpander",
    "ClosureCalendar",
    "ClosureSource",
    "PublicHolidaySource",
    "ZoneVacationSource",
    "PlanningArchive",
    "ScheduleFormatter",
    "build_closure_calendar",
    # Models
    "ClosureKind",
    "ClosurePeriod",
    "ImportResult",
    "ProjectedEntry",
    "Roster",
    "ScheduleEntryView",
    "TemplateEntry",
    # Exceptions
    "PlanningError",
    "TemplateError",
    "MalformedTemplateError",
    "UnknownReferenceError",
    "CoverageError",
    "ScheduleConflictError",
    "PlanningNotFoundError",
    "PreconditionError",
    "SemesterLockedError",
    "ReassignmentError",
    "AccessDeniedError",
    "ClosureDataUnavailableError",
    "ImportTimeoutError",
]
