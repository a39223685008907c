# services/bot.py
# aiogram side: routes incoming text messages into the CommandRouter.

import logging

from aiogram import Dispatcher, F, Router, types
from aiogram.types import ErrorEvent

from services.command_logger import CommandLoggerMiddleware
from services.commands import CommandRouter
from services.transport import InboundMessage, TelegramTransport

logger = logging.getLogger(__name__)


def build_divine_router(commands: CommandRouter) -> Router:
    divine = Router(name="divine")

    @divine.message(F.text)
    async def on_text(message: types.Message):
        event = InboundMessage.from_message(message)
        await commands.handle(event, TelegramTransport(message))

    return divine


def build_dispatcher(commands: CommandRouter) -> Dispatcher:
    dp = Dispatcher()

    dp.message.middleware(CommandLoggerMiddleware(commands.prefix))
    dp.include_router(build_divine_router(commands))

    @dp.errors()
    async def on_error(event: ErrorEvent):
        # logged only; polling goes on
        logger.error("Telegram client error: %r", event.exception, exc_info=event.exception)
        return True

    return dp
