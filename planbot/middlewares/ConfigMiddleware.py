"""Middleware giving handlers access to the configuration."""

from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from planbot.config import Config


class ConfigMiddleware(BaseMiddleware):
    """Injects the whole config and its planning section.

    Handlers receive ``config`` and ``planning_config``.
    """

    def __init__(self, config: Config) -> None:
        self.config = config

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        data["config"] = self.config
        data["planning_config"] = self.config.planning
        return await handler(event, data)
