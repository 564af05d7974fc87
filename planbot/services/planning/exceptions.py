"""
Planning errors.

Template errors carry the full list of issues found in the workbook, so a
manager can fix the whole document in one edit cycle. Messages are Telegram
HTML: text coming from the roster or the workbook is escaped where it is
interpolated.
"""

from html import escape
from typing import Iterable, List


class PlanningError(Exception):
    """Base planning error"""

    pass


class TemplateError(PlanningError):
    """Uploaded workbook was rejected"""

    title = "The planning document was rejected"

    def __init__(self, issues: Iterable):
        self.issues: List = list(issues)
        lines = [f"{self.title} ({len(self.issues)}):"]
        lines.extend(f"- {issue}" for issue in self.issues)
        super().__init__("\n".join(lines))


class MalformedTemplateError(TemplateError):
    """Empty or unparseable cell"""

    title = "Malformed cells"


class UnknownReferenceError(TemplateError):
    """Staff or child name not found in the roster"""

    title = "Unknown names"


class CoverageError(TemplateError):
    """Missing staff weekday or uncovered child block"""

    title = "Incomplete coverage"


class ScheduleConflictError(TemplateError):
    """Staff member booked twice in one slot"""

    title = "Conflicting slots"


class PlanningNotFoundError(PlanningError):
    """Requested object does not exist"""

    pass


class SemesterNotFoundError(PlanningNotFoundError):
    def __init__(self, semester_id: int):
        self.semester_id = semester_id
        super().__init__(f"Semester {semester_id} not found")


class EntryNotFoundError(PlanningNotFoundError):
    def __init__(self, entry_id: int):
        self.entry_id = entry_id
        super().__init__(f"Schedule entry {entry_id} not found")


class DocumentNotFoundError(PlanningNotFoundError):
    def __init__(self, semester_id: int):
        self.semester_id = semester_id
        super().__init__(f"No planning document was imported for semester {semester_id}")


class PreconditionError(PlanningError):
    """Operation is not allowed in the current state"""

    pass


class InvalidSemesterError(PreconditionError):
    """Semester dates are inconsistent"""

    pass


class SemesterLockedError(PreconditionError):
    def __init__(self, semester_id: int):
        self.semester_id = semester_id
        super().__init__(f"Semester {semester_id} was submitted and is locked")


class IncompletePlanningError(PreconditionError):
    """Some staff members have no entry in the semester"""

    def __init__(self, staff_names: Iterable[str]):
        self.staff_names = list(staff_names)
        super().__init__(
            "Every staff member needs at least one entry before submitting. Missing: "
            + ", ".join(escape(name, quote=False) for name in self.staff_names)
        )


class ReassignmentError(PreconditionError):
    """Child reassignment was rejected"""

    pass


class LinkNotFoundError(ReassignmentError):
    def __init__(self, child_id: int, entry_id: int):
        self.child_id = child_id
        self.entry_id = entry_id
        super().__init__(f"Child {child_id} is not linked to entry {entry_id}")


class DuplicateLinkError(ReassignmentError):
    def __init__(self, child_id: int, entry_id: int):
        self.child_id = child_id
        self.entry_id = entry_id
        super().__init__(f"Child {child_id} is already linked to entry {entry_id}")


class ChildOverlapError(ReassignmentError):
    def __init__(self, child_ids: Iterable[int], entry_id: int):
        self.child_ids = sorted(child_ids)
        self.entry_id = entry_id
        super().__init__(
            f"Children {', '.join(map(str, self.child_ids))} already attend another "
            f"active entry overlapping entry {entry_id}"
        )


class AccessDeniedError(PlanningError):
    """User role does not allow the operation"""

    pass


class ClosureDataUnavailableError(PlanningError):
    def __init__(self, year: int):
        self.year = year
        super().__init__(f"Closure data for {year} was not loaded")


class ImportTimeoutError(PlanningError):
    def __init__(self, semester_id: int, timeout: float):
        self.semester_id = semester_id
        self.timeout = timeout
        super().__init__(
            f"Import of semester {semester_id} did not finish within {timeout:.0f}s, nothing was saved"
        )
