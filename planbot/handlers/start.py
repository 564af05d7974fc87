"""Entry point of the bot for every role."""

import logging

from aiogram import F, Router
from aiogram.filters import CommandStart
from aiogram.types import Message

from infrastructure.database.models import User
from infrastructure.database.repo.requests import PlanningRequestsRepo
from planbot.keyboards.planning import semesters_kb
from planbot.misc.dicts import MANAGER_ROLES, Role
from planbot.misc.helpers import get_role

logger = logging.getLogger(__name__)

start_router = Router()
start_router.message.filter(F.chat.type == "private")


@start_router.message(CommandStart())
async def start(message: Message, user: User, repo: PlanningRequestsRepo) -> None:
    """Shows the menu of the user's role.

    Args:
        message: User message
        user: User from the database
        repo: Planning repository
    """
    if not user:
        await message.answer(
            """👋 Hello

Your account is not registered yet. Ask the institution office to link your Telegram account."""
        )
        return

    role = get_role(role_id=user.role) or {"name": "Unknown", "emoji": ""}
    logger.info(f"[Start] {user.fullname} ({user.user_id}) opened the {role['name']} menu")

    if user.role in {int(r) for r in MANAGER_ROLES + (Role.ROOT,)}:
        semesters = await repo.semester.get_semesters()
        await message.answer(
            f"""{role['emoji']} <b>Planning • {role['name']}</b>

Choose a semester below.

/new_semester "Name" 01.09.2025 31.01.2026
/cancel_entry, /reactivate_entry <code>entry</code>
/reassign <code>source target</code>
/reassign_child <code>source child target</code>
/alternatives, /transferred <code>entry</code>""",
            reply_markup=semesters_kb(semesters),
        )
    elif user.role == Role.STAFF:
        await message.answer(
            f"{role['emoji']} Hello {user.fullname}\n\n/my_schedule shows your weekly slots"
        )
    elif user.role == Role.PARENT:
        await message.answer(
            f"{role['emoji']} Hello {user.fullname}\n\n/child_schedule shows your child's schedule"
        )
    else:
        await message.answer("Your account has no role yet. Ask the institution office.")
