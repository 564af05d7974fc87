"""Middleware giving access to the database."""

import logging
from typing import Any, Awaitable, Callable, Dict, Union

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message
from sqlalchemy.exc import DBAPIError, DisconnectionError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from infrastructure.database.repo.requests import PlanningRequestsRepo

logger = logging.getLogger(__name__)


class DatabaseMiddleware(BaseMiddleware):
    """Middleware opening a database session per update.

    Gives the planning repository and the current user to handlers
    """

    def __init__(self, session_pool: async_sessionmaker[AsyncSession]) -> None:
        self.session_pool = session_pool

    async def __call__(
        self,
        handler: Callable[
            [Union[Message, CallbackQuery], Dict[str, Any]], Awaitable[Any]
        ],
        event: Union[Message, CallbackQuery],
        data: Dict[str, Any],
    ) -> Any:
        """Handles middleware calls.

        Args:
            handler: Telegram message or CallbackQuery handler
            event: Telegram event
            data: Handler data

        Returns:
            Handler result, with repo, session and user populated
        """
        max_retries = 3
        retry_count = 0

        while retry_count < max_retries:
            try:
                async with self.session_pool() as session:
                    repo = PlanningRequestsRepo(session)
                    data["repo"] = repo
                    data["session"] = session
                    data["user"] = await repo.user.get_user(user_id=event.from_user.id)

                    return await handler(event, data)

            except (OperationalError, DisconnectionError) as e:
                retry_count += 1
                logger.warning(
                    f"[DB] Database connection error, retry {retry_count}/{max_retries}: {e}"
                )
                if retry_count >= max_retries:
                    logger.error(f"[DB] Database unreachable after {max_retries} attempts: {e}")
                    if isinstance(event, Message):
                        await event.reply("⚠️ Temporary database problem. Please try again later.")
                    return None
            except DBAPIError as e:
                logger.error(f"[DB] Critical database error: {e}")
                return None

        return None
