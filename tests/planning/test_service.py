import asyncio
from datetime import date, time

import pytest

from infrastructure.database.models import Event, EventRegistration
from planbot.misc.dicts import Role
from planbot.services.planning.exceptions import (
    AccessDeniedError,
    DocumentNotFoundError,
    IncompletePlanningError,
    InvalidSemesterError,
    PlanningNotFoundError,
    SemesterLockedError,
    SemesterNotFoundError,
)
from planbot.services.planning.formatters import ScheduleFormatter
from planbot.services.planning.service import require_role

from .conftest import (
    DIRECTOR_ID,
    PARENT_ID,
    STAFF_USER_ID,
    STRANGER_ID,
    VALID_WEEK,
    workbook_bytes,
)


@pytest.fixture
async def users(repo):
    return {
        name: await repo.user.get_user(user_id=user_id)
        for name, user_id in (
            ("director", DIRECTOR_ID),
            ("staff", STAFF_USER_ID),
            ("parent", PARENT_ID),
            ("stranger", STRANGER_ID),
        )
    }


@pytest.fixture
async def events(session_pool):
    """Registrations of Léa: paid and pending in the semester, paid after it"""
    async with session_pool() as session:
        outing = Event(
            id=1, title="Sortie <zoo> & goûter", event_date=date(2024, 9, 4),
            start_time=time(10, 0), end_time=time(16, 0),
        )
        concert = Event(
            id=2, title="Concert", event_date=date(2024, 9, 5),
            start_time=time(14, 0), end_time=time(15, 0),
        )
        later = Event(
            id=3, title="Kermesse", event_date=date(2024, 10, 5),
            start_time=time(9, 0), end_time=time(12, 0),
        )
        session.add_all([outing, concert, later])
        await session.flush()
        session.add_all(
            [
                EventRegistration(event_id=1, child_id=1, payment_status="PAID"),
                EventRegistration(event_id=2, child_id=1, payment_status="PENDING"),
                EventRegistration(event_id=3, child_id=1, payment_status="FREE"),
            ]
        )
        await session.commit()


class TestRoles:
    async def test_require_role(self, users):
        require_role(users["director"], Role.DIRECTOR)
        require_role(users["parent"], Role.PARENT, Role.STAFF)

        with pytest.raises(AccessDeniedError):
            require_role(users["parent"], Role.DIRECTOR)
        with pytest.raises(AccessDeniedError):
            require_role(None, Role.PARENT)

    async def test_unauthorized_user(self, planning, repo, users):
        with pytest.raises(AccessDeniedError):
            await planning.list_semesters(repo, users["stranger"])

        semesters = await planning.list_semesters(repo, users["parent"])
        assert [semester.name for semester in semesters] == ["Rentrée 2024"]

    async def test_manager_operations(self, planning, repo, users):
        for user in (users["staff"], users["parent"]):
            with pytest.raises(AccessDeniedError):
                await planning.preview_document(user, 1, b"")
            with pytest.raises(AccessDeniedError):
                await planning.reassign_children(user, 1, 2)
            with pytest.raises(AccessDeniedError):
                await planning.submit_semester(repo, user, 1)


class TestSemesters:
    async def test_create(self, planning, repo, users):
        semester = await planning.create_semester(
            repo, users["director"], " Semestre 2 ", date(2025, 2, 3), date(2025, 7, 4)
        )

        assert semester.id is not None
        assert semester.name == "Semestre 2"
        assert not semester.is_locked

    async def test_invalid_dates(self, planning, repo, users):
        with pytest.raises(InvalidSemesterError):
            await planning.create_semester(
                repo, users["director"], "S2", date(2025, 2, 3), date(2025, 2, 3)
            )
        with pytest.raises(InvalidSemesterError):
            await planning.create_semester(
                repo, users["director"], "  ", date(2025, 2, 3), date(2025, 7, 4)
            )

    async def test_unknown_semester(self, planning, repo, users):
        with pytest.raises(SemesterNotFoundError):
            await planning.get_semester(repo, users["director"], 42)

    async def test_submit_requires_every_staff_member(self, planning, repo, users):
        with pytest.raises(IncompletePlanningError) as exc_info:
            await planning.submit_semester(repo, users["director"], 1)

        assert sorted(exc_info.value.staff_names) == ["Marie Curie", "Paul Martin"]

    async def test_submit_locks_semester(self, seeded_entries, planning, repo, users):
        semester = await planning.submit_semester(repo, users["director"], 1)

        assert semester.is_locked
        with pytest.raises(SemesterLockedError):
            await planning.import_document(users["director"], 1, workbook_bytes(VALID_WEEK))

    async def test_submit_waits_for_running_import(self, seeded_entries, planning, repo, users):
        async with planning.importer.semester_lock(1):
            submit = asyncio.create_task(planning.submit_semester(repo, users["director"], 1))
            await asyncio.sleep(0.05)
            assert not submit.done()

        semester = await submit
        assert semester.is_locked

    async def test_imported_document(self, planning, repo, users):
        with pytest.raises(DocumentNotFoundError):
            await planning.get_imported_document(repo, users["director"], 1)

        content = workbook_bytes(VALID_WEEK)
        await planning.import_document(users["director"], 1, content, file_name="week.xlsx")

        assert await planning.get_imported_document(repo, users["director"], 1) == (
            "week.xlsx",
            content,
        )


class TestSchedules:
    """Test cases for the role filtered schedule views"""

    async def test_staff_sees_own_schedule(self, seeded_entries, planning, repo, users):
        views = await planning.get_staff_schedule(repo, users["staff"], 1, staff_id=2)

        assert [view.activity for view in views] == ["Atelier", "Musique"]
        assert {view.staff_name for view in views} == {"Marie Curie"}

    async def test_manager_sees_any_staff(self, seeded_entries, planning, repo, users):
        views = await planning.get_staff_schedule(repo, users["director"], 1, staff_id=2)

        assert [view.activity for view in views] == ["Sport", "Piscine", "vacation"]

    async def test_manager_without_staff_profile(self, seeded_entries, planning, repo, users):
        with pytest.raises(PlanningNotFoundError):
            await planning.get_staff_schedule(repo, users["director"], 1)

    async def test_parent_cannot_see_staff_schedule(self, seeded_entries, planning, repo, users):
        with pytest.raises(AccessDeniedError):
            await planning.get_staff_schedule(repo, users["parent"], 1)

    async def test_semester_schedule(self, seeded_entries, planning, repo, users):
        views = await planning.get_semester_schedule(repo, users["director"], 1)

        assert len(views) == 5
        assert views[0].children == ("Léa Dupont", "Tom Bernard")

    async def test_child_schedule(self, seeded_entries, events, planning, repo, users):
        views = await planning.get_child_schedule(repo, users["parent"], 1, 1)

        assert [(view.activity, view.is_event) for view in views] == [
            ("Atelier", False),
            ("vacation", False),
            ("Sortie &lt;zoo&gt; &amp; goûter", True),
        ]
        assert views[1].is_closure
        assert views[2].children == ("Léa Dupont",)

        text = ScheduleFormatter.format_schedule("Léa", views)
        assert "🎉 10:00-16:00 Sortie &lt;zoo&gt; &amp; goûter" in text
        assert "<zoo>" not in text

    async def test_parent_only_sees_own_children(self, seeded_entries, planning, repo, users):
        with pytest.raises(AccessDeniedError):
            await planning.get_child_schedule(repo, users["parent"], 1, 2)

    async def test_manager_sees_any_child(self, seeded_entries, planning, repo, users):
        views = await planning.get_child_schedule(repo, users["director"], 1, 2)

        assert [view.activity for view in views] == ["Atelier", "Piscine", "vacation"]

    async def test_unknown_child(self, seeded_entries, planning, repo, users):
        with pytest.raises(PlanningNotFoundError):
            await planning.get_child_schedule(repo, users["director"], 1, 99)

    async def test_parent_children(self, planning, repo, users):
        children = await planning.get_parent_children(repo, users["parent"])
        assert [child.fullname for child in children] == ["Léa Dupont"]

        children = await planning.get_parent_children(repo, users["director"])
        assert len(children) == 2
