"""Semester administration for directors and service managers."""

import html
import logging
from io import BytesIO

from aiogram import Bot, F, Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import BufferedInputFile, CallbackQuery, Message

from infrastructure.database.models import User
from infrastructure.database.repo.requests import PlanningRequestsRepo
from planbot.config import PlanningConfig
from planbot.filters.role import ManagerFilter
from planbot.handlers.planning.common import send_error, send_text
from planbot.keyboards.planning import (
    MainMenu,
    SemesterMenu,
    semester_kb,
    semesters_kb,
    upload_back_kb,
)
from planbot.misc.helpers import command_args, parse_date, short_name, strftime_date
from planbot.misc.states.planning import PlanningUpload
from planbot.services.planning.exceptions import PlanningError
from planbot.services.planning.formatters import ScheduleFormatter
from planbot.services.planning.service import PlanningService

logger = logging.getLogger(__name__)

manager_router = Router()
manager_router.message.filter(F.chat.type == "private", ManagerFilter())
manager_router.callback_query.filter(F.message.chat.type == "private", ManagerFilter())


@manager_router.message(Command("new_semester"))
async def new_semester(
    message: Message, user: User, repo: PlanningRequestsRepo, planning: PlanningService
):
    """Creates a semester: /new_semester "Name" dd.mm.yyyy dd.mm.yyyy"""
    args = command_args(message.text)
    if len(args) != 3:
        await message.answer(
            'Usage: /new_semester "Semester 1 2025" 01.09.2025 31.01.2026'
        )
        return

    name, start_text, end_text = args
    start_date, end_date = parse_date(start_text), parse_date(end_text)
    if start_date is None or end_date is None:
        await message.answer("Dates must look like 01.09.2025")
        return

    try:
        semester = await planning.create_semester(repo, user, name, start_date, end_date)
    except PlanningError as e:
        await send_error(message, e)
        return

    await message.answer(
        f"✅ Semester <b>{html.escape(semester.name)}</b> created "
        f"({semester.start_date:{strftime_date}} - {semester.end_date:{strftime_date}})",
        reply_markup=semester_kb(semester),
    )


@manager_router.callback_query(MainMenu.filter(F.menu == "semesters"))
async def semesters_menu(callback: CallbackQuery, state: FSMContext, repo: PlanningRequestsRepo):
    await state.clear()
    semesters = await repo.semester.get_semesters()
    await callback.message.edit_text(
        "<b>📅 Semesters</b>\n\nChoose a semester", reply_markup=semesters_kb(semesters)
    )


@manager_router.callback_query(SemesterMenu.filter(F.action == "open"))
async def semester_menu(
    callback: CallbackQuery,
    callback_data: SemesterMenu,
    state: FSMContext,
    user: User,
    repo: PlanningRequestsRepo,
    planning: PlanningService,
):
    """Shows the actions of a semester."""
    await state.clear()
    try:
        semester = await planning.get_semester(repo, user, callback_data.semester_id)
    except PlanningError as e:
        await callback.answer(str(e), show_alert=True)
        return

    entries_count = await repo.entry.count_entries(semester.id)
    status = (
        f"🔒 Submitted {semester.submitted_at:{strftime_date}}"
        if semester.is_locked
        else "📝 Draft"
    )
    await callback.message.edit_text(
        f"""<b>📅 {html.escape(semester.name)}</b>

{semester.start_date:{strftime_date}} - {semester.end_date:{strftime_date}}
Status: {status}
Entries: {entries_count}""",
        reply_markup=semester_kb(semester),
    )


@manager_router.callback_query(SemesterMenu.filter(F.action == "schedule"))
async def semester_schedule(
    callback: CallbackQuery,
    callback_data: SemesterMenu,
    user: User,
    repo: PlanningRequestsRepo,
    planning: PlanningService,
):
    await callback.answer()
    try:
        semester = await planning.get_semester(repo, user, callback_data.semester_id)
        views = await planning.get_semester_schedule(repo, user, semester.id)
    except PlanningError as e:
        await send_error(callback.message, e)
        return

    await send_text(
        callback.message,
        ScheduleFormatter.format_schedule(f"🗓 {semester.name}", views, with_staff=True),
    )


@manager_router.callback_query(SemesterMenu.filter(F.action.in_({"preview", "import"})))
async def upload_menu(
    callback: CallbackQuery,
    callback_data: SemesterMenu,
    state: FSMContext,
    planning_config: PlanningConfig,
):
    """Waits for a planning workbook."""
    preview = callback_data.action == "preview"
    bot_message = await callback.message.edit_text(
        f"""<b>{'👀 Preview' if preview else '📤 Import'}</b>

Send the weekly planning workbook (.xlsx), one sheet per weekday from Lundi to Vendredi
Public holidays and {planning_config.vacation_zone} school vacations are marked automatically

<i>{'Nothing will be saved' if preview else 'Current entries of the semester will be replaced'}</i>""",
        reply_markup=upload_back_kb(callback_data.semester_id),
    )
    await state.update_data(
        semester_id=callback_data.semester_id, bot_message_id=bot_message.message_id
    )
    await state.set_state(PlanningUpload.preview if preview else PlanningUpload.document)


@manager_router.message(
    F.document, F.document.file_name.endswith(".xlsx"), PlanningUpload.preview
)
async def preview_document(
    message: Message,
    state: FSMContext,
    bot: Bot,
    user: User,
    repo: PlanningRequestsRepo,
    planning: PlanningService,
):
    data = await state.get_data()
    semester_id = data["semester_id"]
    content = await _download(bot, message)

    try:
        semester = await planning.get_semester(repo, user, semester_id)
        result = await planning.preview_document(user, semester_id, content)
    except PlanningError as e:
        await send_error(message, e)
        return

    await state.clear()
    await send_text(
        message,
        ScheduleFormatter.format_preview(semester.name, result.entries),
        reply_markup=semester_kb(semester),
    )


@manager_router.message(
    F.document, F.document.file_name.endswith(".xlsx"), PlanningUpload.document
)
async def import_document(
    message: Message,
    state: FSMContext,
    bot: Bot,
    user: User,
    repo: PlanningRequestsRepo,
    planning: PlanningService,
):
    data = await state.get_data()
    semester_id = data["semester_id"]
    content = await _download(bot, message)
    progress = await message.answer("⏳ Importing the planning...")

    try:
        result = await planning.import_document(
            user, semester_id, content, file_name=message.document.file_name
        )
        semester = await planning.get_semester(repo, user, semester_id)
    except PlanningError as e:
        await progress.delete()
        await send_error(message, e)
        return

    await state.clear()
    logger.info(
        f"[Import] {short_name(user.fullname)} imported {message.document.file_name} into semester {semester_id}"
    )
    await progress.edit_text(
        f"""✅ <b>Planning imported</b>

Semester: {html.escape(semester.name)}
Entries: {result.entries_count - result.closures_count}
Closure markers: {result.closures_count}""",
        reply_markup=semester_kb(semester),
    )


@manager_router.message(F.document, PlanningUpload.preview)
@manager_router.message(F.document, PlanningUpload.document)
async def wrong_document(message: Message):
    await message.answer("Only .xlsx workbooks are accepted")


@manager_router.callback_query(SemesterMenu.filter(F.action == "submit"))
async def submit_semester(
    callback: CallbackQuery,
    callback_data: SemesterMenu,
    user: User,
    repo: PlanningRequestsRepo,
    planning: PlanningService,
):
    try:
        semester = await planning.submit_semester(repo, user, callback_data.semester_id)
    except PlanningError as e:
        await callback.answer()
        await send_error(callback.message, e)
        return

    await callback.answer("✅ Planning submitted")
    await callback.message.edit_reply_markup(reply_markup=semester_kb(semester))


@manager_router.callback_query(SemesterMenu.filter(F.action == "document"))
async def imported_document(
    callback: CallbackQuery,
    callback_data: SemesterMenu,
    user: User,
    repo: PlanningRequestsRepo,
    planning: PlanningService,
):
    try:
        file_name, content = await planning.get_imported_document(
            repo, user, callback_data.semester_id
        )
    except PlanningError as e:
        await callback.answer(str(e), show_alert=True)
        return

    await callback.answer()
    await callback.message.answer_document(
        BufferedInputFile(content, filename=file_name or "planning.xlsx")
    )


async def _download(bot: Bot, message: Message) -> bytes:
    buffer = BytesIO()
    await bot.download(message.document, destination=buffer)
    return buffer.getvalue()
