import asyncio
import logging

from aiogram import Bot
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

import config
from services.bot import build_dispatcher
from services.commands import CommandRouter
from services.health import BotState, start_health_server
from services.store import GoogleSheetsStore, SqliteStore
from taro.catalog import CardCatalog
from taro.engine import ReadingEngine
from taro.formatter import ReadingFormatter
from taro.renderer import ArtworkFetcher, SpreadRenderer
from taro.selector import Selector

logger = logging.getLogger("tarot_bot")


def setup_logging():
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def _log_loop_exception(loop, context):
    # unhandled task errors are logged, the process keeps running
    logger.error("Unhandled async error: %s", context.get("message"), exc_info=context.get("exception"))


async def build_store():
    if config.STORE_BACKEND == "sqlite":
        store = SqliteStore(config.SQLITE_PATH, seed_dir=config.SEED_DIR)
        await store.init()
        return store
    return GoogleSheetsStore(
        config.SPREADSHEET_ID or "",
        config.GOOGLE_SERVICE_ACCOUNT_EMAIL or "",
        config.GOOGLE_PRIVATE_KEY,
    )


async def main():
    logger.info("🔮 Bot is starting...")
    asyncio.get_running_loop().set_exception_handler(_log_loop_exception)

    if not config.check():
        return

    # 1) Store and services
    store = await build_store()
    catalog = CardCatalog(store)
    engine = ReadingEngine(catalog, Selector(catalog), store)
    fetcher = ArtworkFetcher()
    commands = CommandRouter(
        catalog,
        engine,
        ReadingFormatter(config.TIMEZONE),
        SpreadRenderer(fetcher),
        prefix=config.COMMAND_PREFIX,
    )

    # 2) Health endpoints come up before the data, so health checks see "not ready"
    state = BotState(catalog, commands)
    health = await start_health_server(state, config.PORT)

    # 3) Bot and dispatcher
    bot = Bot(
        token=config.BOT_TOKEN,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )
    dp = build_dispatcher(commands)

    @dp.startup()
    async def on_startup():
        me = await bot.get_me()
        logger.info("Logged in as @%s (id %s)", me.username, me.id)
        if await catalog.load_with_retry():
            logger.info("Tarot bot is ready")
        state.polling = True

    try:
        await dp.start_polling(bot)
    finally:
        logger.info("Shutting down gracefully")
        state.polling = False
        await engine.drain()
        await health.cleanup()
        await fetcher.close()
        await store.close()
        await bot.session.close()


def run():
    setup_logging()
    asyncio.run(main())


if __name__ == "__main__":
    run()
