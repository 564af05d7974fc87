import logging

from aiogram.types import Message

from planbot.services.planning.exceptions import PlanningError
from planbot.services.planning.formatters import split_message

logger = logging.getLogger(__name__)


async def send_text(message: Message, text: str, **kwargs) -> None:
    """Sends a text, split in several messages when too long."""
    parts = split_message(text)
    for index, part in enumerate(parts):
        # Keyboard goes with the last part only
        extra = kwargs if index == len(parts) - 1 else {}
        await message.answer(part, **extra)


async def send_error(message: Message, error: PlanningError) -> None:
    logger.info(f"[Planning] Rejected for {message.chat.id}: {type(error).__name__}")
    await send_text(message, f"⚠️ {error}")
