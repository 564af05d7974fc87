import asyncio
from datetime import date, datetime

import pytest

from infrastructure.database.models import Semester
from infrastructure.database.repo.planning.schedule_entry import ScheduleEntryRepo
from infrastructure.database.repo.requests import PlanningRequestsRepo
from planbot.services.planning.exceptions import (
    ImportTimeoutError,
    MalformedTemplateError,
    SemesterLockedError,
    SemesterNotFoundError,
)

from .conftest import VALID_WEEK, full_week, vacation, workbook_bytes


async def count_entries(session_pool, semester_id=1) -> int:
    async with session_pool() as session:
        return await PlanningRequestsRepo(session).entry.count_entries(semester_id)


class TestPlanningImporter:
    """Test cases for the semester import transaction"""

    async def test_preview_writes_nothing(self, planning, session_pool, archive):
        result = await planning.importer.preview(1, workbook_bytes(VALID_WEEK))

        assert result.entries_count == 46
        assert result.closures_count == 0
        assert result.document_path is None
        assert await count_entries(session_pool) == 0
        assert not archive.uploads_folder.exists()

    async def test_import(self, planning, session_pool):
        content = workbook_bytes(VALID_WEEK)

        result = await planning.importer.import_document(
            1, content, file_name="planning.xlsx", uploaded_by=100
        )

        assert result.entries_count == 46
        assert result.document_path.read_bytes() == content
        assert result.document_path.name.startswith("1_")

        async with session_pool() as session:
            repo = PlanningRequestsRepo(session)
            entries = await repo.entry.get_entries(1, staff_id=1)
            upload = await repo.upload.get_latest_upload(1)

        assert len(entries) == 23
        assert entries[0].start_time == datetime(2024, 9, 2, 9, 0)
        assert sorted(link.child_id for link in entries[0].entry_children) == [1, 2]
        assert upload.file_name == "planning.xlsx"
        assert upload.file_size == len(content)
        assert upload.uploaded_by_user_id == 100

    async def test_closures_are_marked(self, planning, closure_source):
        closure_source.periods[2024] = [vacation(date(2024, 9, 4), date(2024, 9, 4))]

        result = await planning.importer.import_document(1, workbook_bytes(VALID_WEEK))

        # Each staff member loses Wednesday's three slots for one marker
        assert result.entries_count == 46 - 6 + 2
        assert result.closures_count == 2
        markers = [entry for entry in result.entries if entry.closure is not None]
        assert {entry.day for entry in markers} == {date(2024, 9, 4)}

    async def test_reimport_replaces_entries(self, planning, session_pool):
        await planning.importer.import_document(1, workbook_bytes(VALID_WEEK))
        rows = full_week({"Marie Curie": "Chant – tous", "Paul Martin": "pause"})

        await planning.importer.import_document(1, workbook_bytes(rows))

        assert await count_entries(session_pool) == 46
        async with session_pool() as session:
            entries = await PlanningRequestsRepo(session).entry.get_entries(1, staff_id=1)
        assert {entry.activity for entry in entries} == {"Chant"}

    async def test_rejected_workbook_keeps_previous_entries(self, planning, session_pool, archive):
        await planning.importer.import_document(1, workbook_bytes(VALID_WEEK))
        rows = full_week({"Marie Curie": "Chant", "Paul Martin": "pause"})

        with pytest.raises(MalformedTemplateError):
            await planning.importer.import_document(1, workbook_bytes(rows))

        assert await count_entries(session_pool) == 46
        assert len(list(archive.uploads_folder.iterdir())) == 1

    async def test_failed_write_rolls_back(self, planning, session_pool, archive, monkeypatch):
        await planning.importer.import_document(1, workbook_bytes(VALID_WEEK))

        async def broken_add_entries(self, entries):
            raise RuntimeError("disk full")

        monkeypatch.setattr(ScheduleEntryRepo, "add_entries", broken_add_entries)

        with pytest.raises(RuntimeError):
            await planning.importer.import_document(1, workbook_bytes(VALID_WEEK))

        assert await count_entries(session_pool) == 46
        assert len(list(archive.uploads_folder.iterdir())) == 1

    async def test_locked_semester(self, planning, session_pool):
        async with session_pool() as session:
            semester = await session.get(Semester, 1)
            semester.submitted_at = datetime(2024, 9, 1, 12, 0)
            await session.commit()

        with pytest.raises(SemesterLockedError):
            await planning.importer.import_document(1, workbook_bytes(VALID_WEEK))

        assert await count_entries(session_pool) == 0

    async def test_semester_submitted_during_import(
        self, planning, session_pool, archive, monkeypatch
    ):
        build_projection = planning.importer.build_projection

        async def projection_then_submit(repo, semester, content):
            entries = await build_projection(repo, semester, content)
            async with session_pool() as session:
                locked = await session.get(Semester, semester.id)
                locked.submitted_at = datetime(2024, 9, 1, 12, 0)
                await session.commit()
            return entries

        monkeypatch.setattr(planning.importer, "build_projection", projection_then_submit)

        with pytest.raises(SemesterLockedError):
            await planning.importer.import_document(1, workbook_bytes(VALID_WEEK))

        assert await count_entries(session_pool) == 0
        assert list(archive.uploads_folder.iterdir()) == []

    async def test_unknown_semester(self, planning):
        with pytest.raises(SemesterNotFoundError):
            await planning.importer.import_document(42, workbook_bytes(VALID_WEEK))

    async def test_timeout(self, planning, session_pool, monkeypatch):
        async def slow_projection(repo, semester, content):
            await asyncio.sleep(5)

        planning.importer.timeout = 0.05
        monkeypatch.setattr(planning.importer, "build_projection", slow_projection)

        with pytest.raises(ImportTimeoutError):
            await planning.importer.import_document(1, workbook_bytes(VALID_WEEK))

        assert await count_entries(session_pool) == 0

    async def test_concurrent_imports_are_serialised(self, planning, session_pool):
        content = workbook_bytes(VALID_WEEK)

        await asyncio.gather(
            planning.importer.import_document(1, content),
            planning.importer.import_document(1, content),
        )

        assert await count_entries(session_pool) == 46
