import logging
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import Message

logger = logging.getLogger(__name__)


class CommandLoggerMiddleware(BaseMiddleware):
    """
    Logs every incoming text message that starts with the command prefix:
    ✔ who sent it
    ✔ the command line itself
    """

    def __init__(self, prefix: str):
        self.prefix = prefix

    async def __call__(
        self,
        handler: Callable[[Any, Dict[str, Any]], Awaitable[Any]],
        event: Any,
        data: Dict[str, Any]
    ) -> Any:

        if isinstance(event, Message) and event.text and event.text.startswith(self.prefix):
            user = event.from_user
            logger.info(
                "Command from %s (%s) in chat %s: %s",
                user.id if user else "?",
                user.username if user else "?",
                event.chat.id,
                event.text,
            )

        return await handler(event, data)
