"""Manual corrections of imported entries."""

import logging

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from infrastructure.database.models import User
from planbot.filters.role import ManagerFilter
from planbot.handlers.planning.common import send_error, send_text
from planbot.misc.helpers import int_args
from planbot.services.planning.exceptions import PlanningError
from planbot.services.planning.formatters import ScheduleFormatter
from planbot.services.planning.service import PlanningService

logger = logging.getLogger(__name__)

entries_router = Router()
entries_router.message.filter(F.chat.type == "private", ManagerFilter())


async def _args(message: Message, count: int, usage: str):
    args = int_args(message.text)
    if args is None or len(args) != count:
        await message.answer(f"Usage: {usage}")
        return None
    return args


@entries_router.message(Command("cancel_entry", "reactivate_entry"))
async def toggle_entry(
    message: Message, command: CommandObject, user: User, planning: PlanningService
):
    """Cancels or reactivates an entry by id."""
    cancel = command.command == "cancel_entry"
    args = await _args(message, 1, f"/{command.command} <entry id>")
    if args is None:
        return

    try:
        view = await planning.cancel_entry(user, args[0], cancel=cancel)
    except PlanningError as e:
        await send_error(message, e)
        return

    await message.answer(
        f"{'❌ Entry cancelled' if cancel else '✅ Entry reactivated'}\n\n"
        + ScheduleFormatter.format_entry(view, with_staff=True)
    )


@entries_router.message(Command("reassign"))
async def reassign_children(message: Message, user: User, planning: PlanningService):
    """Moves every child of an entry: /reassign <source> <target>"""
    args = await _args(message, 2, "/reassign <source entry> <target entry>")
    if args is None:
        return

    source_id, target_id = args
    try:
        moved = await planning.reassign_children(user, source_id, target_id)
    except PlanningError as e:
        await send_error(message, e)
        return

    await message.answer(
        f"✅ {moved} children moved from #{source_id} to #{target_id}, entry #{source_id} is cancelled"
    )


@entries_router.message(Command("reassign_child"))
async def reassign_child(message: Message, user: User, planning: PlanningService):
    """Moves one child: /reassign_child <source> <child> <target>"""
    args = await _args(message, 3, "/reassign_child <source entry> <child id> <target entry>")
    if args is None:
        return

    source_id, child_id, target_id = args
    try:
        await planning.reassign_child(user, source_id, child_id, target_id)
    except PlanningError as e:
        await send_error(message, e)
        return

    await message.answer(f"✅ Child {child_id} moved from #{source_id} to #{target_id}")


@entries_router.message(Command("alternatives"))
async def alternatives(message: Message, user: User, planning: PlanningService):
    """Entries running at the same time with another educator."""
    args = await _args(message, 1, "/alternatives <entry id>")
    if args is None:
        return

    try:
        views = await planning.find_alternatives(user, args[0])
    except PlanningError as e:
        await send_error(message, e)
        return

    await send_text(
        message,
        ScheduleFormatter.format_schedule(f"Alternatives to #{args[0]}", views, with_staff=True),
    )


@entries_router.message(Command("transferred"))
async def transferred(message: Message, user: User, planning: PlanningService):
    """Children moved away from an entry."""
    args = await _args(message, 1, "/transferred <entry id>")
    if args is None:
        return

    try:
        children = await planning.get_transferred_children(user, args[0])
    except PlanningError as e:
        await send_error(message, e)
        return

    await message.answer(ScheduleFormatter.format_transferred(args[0], children))
