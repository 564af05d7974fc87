import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.fsm.storage.redis import DefaultKeyBuilder, RedisStorage
from aiogram.types import BotCommand, BotCommandScopeAllPrivateChats
from aiogram.webhook.aiohttp_server import SimpleRequestHandler, setup_application
from aiohttp import web

from infrastructure.api.school_calendar import SchoolCalendarAPI
from infrastructure.database.setup import create_engine, create_session_pool
from planbot.config import Config, load_config
from planbot.handlers import routers_list
from planbot.middlewares.ConfigMiddleware import ConfigMiddleware
from planbot.middlewares.DatabaseMiddleware import DatabaseMiddleware
from planbot.services.logger import setup_logging
from planbot.services.planning import (
    PlanningArchive,
    PlanningService,
    build_closure_calendar,
)

bot_config = load_config(".env")

logger = logging.getLogger(__name__)

ALLOWED_UPDATES = ["message", "callback_query"]


def register_middlewares(dp: Dispatcher, config: Config, session_pool=None) -> None:
    """Registers middlewares for message and callback events.

    Args:
        dp: Event dispatcher
        config: Configuration
        session_pool: Session pool of the planning database
    """
    config_middleware = ConfigMiddleware(config)
    database_middleware = DatabaseMiddleware(session_pool=session_pool)

    for middleware in [config_middleware, database_middleware]:
        dp.message.outer_middleware(middleware)
        dp.callback_query.outer_middleware(middleware)


def get_storage(config) -> RedisStorage | MemoryStorage:
    """Returns the FSM storage matching the configuration.

    Args:
        config: Configuration object

    Returns:
        RedisStorage or MemoryStorage
    """
    if config.tg_bot.use_redis:
        return RedisStorage.from_url(
            config.redis.dsn(),
            key_builder=DefaultKeyBuilder(with_bot_id=True, with_destiny=True),
        )
    else:
        return MemoryStorage()


def build_planning_service(config: Config, session_pool) -> PlanningService:
    """Wires the planning engine from the configuration.

    Args:
        config: Configuration object
        session_pool: Session pool of the planning database

    Returns:
        Ready PlanningService
    """
    planning = config.planning
    vacation_api = SchoolCalendarAPI(
        ics_url=planning.vacation_ics_url, timeout=planning.http_timeout
    )
    closures = build_closure_calendar(
        vacation_api, zone=planning.vacation_zone, timezone=planning.timezone
    )
    archive = PlanningArchive(planning.uploads_dir, timezone=planning.timezone)
    return PlanningService(
        session_pool,
        closures,
        archive,
        import_timeout=planning.import_timeout,
        timezone=planning.timezone,
    )


async def on_startup_webhook(bot: Bot, config: Config) -> None:
    """Sets the webhook when the bot starts.

    Args:
        bot: Bot instance
        config: Application configuration
    """
    webhook_url = f"https://{config.tg_bot.webhook_domain}{config.tg_bot.webhook_path}"
    logger.info(f"[Webhook] Setting webhook: {webhook_url}")

    await bot.set_webhook(
        url=webhook_url,
        allowed_updates=ALLOWED_UPDATES,
        drop_pending_updates=True,
        secret_token=config.tg_bot.webhook_secret,
    )
    logger.info("[Webhook] Webhook set")


async def on_shutdown_webhook(bot: Bot) -> None:
    logger.info("[Webhook] Deleting webhook...")
    await bot.delete_webhook()
    logger.info("[Webhook] Webhook deleted")


async def main() -> None:
    """Main entry point of the bot."""
    setup_logging()

    storage = get_storage(bot_config)

    bot = Bot(
        token=bot_config.tg_bot.token,
        default=DefaultBotProperties(parse_mode="HTML", link_preview_is_disabled=True),
    )

    await bot.set_my_commands(
        commands=[
            BotCommand(command="start", description="Main menu"),
            BotCommand(command="my_schedule", description="My weekly schedule"),
            BotCommand(command="child_schedule", description="Schedule of my child"),
        ],
        scope=BotCommandScopeAllPrivateChats(),
    )

    dp = Dispatcher(storage=storage)

    engine = create_engine(bot_config.db)
    session_pool = create_session_pool(engine)

    dp["planning"] = build_planning_service(bot_config, session_pool)

    dp.include_routers(*routers_list)

    register_middlewares(dp, bot_config, session_pool)

    try:
        if bot_config.tg_bot.use_webhook:
            logger.info("[Startup] Bot started in webhook mode")
            await on_startup_webhook(bot, bot_config)

            app = web.Application()

            webhook_handler = SimpleRequestHandler(
                dispatcher=dp,
                bot=bot,
                secret_token=bot_config.tg_bot.webhook_secret,
            )
            webhook_handler.register(app, path=bot_config.tg_bot.webhook_path)
            setup_application(app, dp, bot=bot)

            runner = web.AppRunner(app)
            await runner.setup()
            site = web.TCPSite(
                runner, host="0.0.0.0", port=bot_config.tg_bot.webhook_port
            )
            await site.start()

            logger.info(
                f"[Webhook] Server listening on port {bot_config.tg_bot.webhook_port}"
            )

            await asyncio.Event().wait()

        else:
            logger.info("[Startup] Bot started in polling mode")
            await dp.start_polling(bot, allowed_updates=ALLOWED_UPDATES)
    finally:
        if bot_config.tg_bot.use_webhook:
            await on_shutdown_webhook(bot)
        await engine.dispose()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logging.error("Bot was interrupted by the user!")
