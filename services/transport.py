# services/transport.py
# What the command router needs from the chat platform, and its Telegram version.

from dataclasses import dataclass
from typing import Optional, Protocol

from aiogram import types
from aiogram.types import BufferedInputFile


@dataclass(frozen=True)
class InboundMessage:
    text: str
    author_id: str
    is_bot: bool = False

    @classmethod
    def from_message(cls, message: types.Message) -> "InboundMessage":
        user = message.from_user
        return cls(
            text=message.text or "",
            author_id=str(user.id) if user else "unknown",
            is_bot=bool(user and user.is_bot),
        )


class ChatTransport(Protocol):
    async def reply(
        self, text: str, image: Optional[bytes] = None, image_name: str = "spread.png"
    ) -> None:
        ...

    async def send_followup(self, text: str) -> None:
        ...


class TelegramTransport:
    def __init__(self, message: types.Message):
        self.message = message

    async def reply(
        self, text: str, image: Optional[bytes] = None, image_name: str = "spread.png"
    ) -> None:
        if image is not None:
            await self.message.reply_photo(BufferedInputFile(image, filename=image_name))
        await self.message.reply(text)

    async def send_followup(self, text: str) -> None:
        await self.message.answer(text)
