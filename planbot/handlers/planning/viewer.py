"""Schedules of educators and parents."""

import logging

from aiogram import F, Router
from aiogram.filters import Command, or_f
from aiogram.types import CallbackQuery, Message

from infrastructure.database.models import User
from infrastructure.database.repo.requests import PlanningRequestsRepo
from planbot.filters.role import ManagerFilter, ParentFilter, StaffFilter
from planbot.handlers.planning.common import send_error, send_text
from planbot.keyboards.planning import (
    ChildChoice,
    ScheduleView,
    children_kb,
    view_semesters_kb,
)
from planbot.services.planning.exceptions import PlanningError
from planbot.services.planning.formatters import ScheduleFormatter
from planbot.services.planning.service import PlanningService

logger = logging.getLogger(__name__)

viewer_router = Router()
viewer_router.message.filter(F.chat.type == "private")
viewer_router.callback_query.filter(F.message.chat.type == "private")


@viewer_router.message(Command("my_schedule"), or_f(StaffFilter(), ManagerFilter()))
async def my_schedule(
    message: Message, user: User, repo: PlanningRequestsRepo, planning: PlanningService
):
    try:
        semesters = await planning.list_semesters(repo, user)
    except PlanningError as e:
        await send_error(message, e)
        return

    await message.answer(
        "<b>🧑‍🏫 My schedule</b>\n\nChoose a semester",
        reply_markup=view_semesters_kb(semesters),
    )


@viewer_router.message(Command("child_schedule"), or_f(ParentFilter(), ManagerFilter()))
async def child_schedule(
    message: Message, user: User, repo: PlanningRequestsRepo, planning: PlanningService
):
    try:
        children = await planning.get_parent_children(repo, user)
    except PlanningError as e:
        await send_error(message, e)
        return

    if not children:
        await message.answer("No child is linked to your account")
        return

    await message.answer(
        "<b>👶 Child schedule</b>\n\nChoose a child", reply_markup=children_kb(children)
    )


@viewer_router.callback_query(ChildChoice.filter())
async def child_semesters(
    callback: CallbackQuery,
    callback_data: ChildChoice,
    user: User,
    repo: PlanningRequestsRepo,
    planning: PlanningService,
):
    try:
        semesters = await planning.list_semesters(repo, user)
    except PlanningError as e:
        await callback.answer(str(e), show_alert=True)
        return

    await callback.message.edit_text(
        "<b>👶 Child schedule</b>\n\nChoose a semester",
        reply_markup=view_semesters_kb(semesters, child_id=callback_data.child_id),
    )


@viewer_router.callback_query(ScheduleView.filter())
async def show_schedule(
    callback: CallbackQuery,
    callback_data: ScheduleView,
    user: User,
    repo: PlanningRequestsRepo,
    planning: PlanningService,
):
    """Shows the staff schedule, or the child schedule when a child was chosen."""
    await callback.answer()
    try:
        semester = await planning.get_semester(repo, user, callback_data.semester_id)
        if callback_data.child_id:
            views = await planning.get_child_schedule(
                repo, user, semester.id, callback_data.child_id
            )
            child = await repo.roster.get_child(callback_data.child_id)
            title = f"👶 {child.fullname} • {semester.name}"
        else:
            views = await planning.get_staff_schedule(repo, user, semester.id)
            title = f"🧑‍🏫 {user.fullname} • {semester.name}"
    except PlanningError as e:
        await send_error(callback.message, e)
        return

    await send_text(callback.message, ScheduleFormatter.format_schedule(title, views))
