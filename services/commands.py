# services/commands.py
# "/divine <command> [question]" handling: help, spreads, status, history
# and one command per spread key.

import logging
import time
from html import escape
from typing import List, Optional

from services.transport import ChatTransport, InboundMessage
from taro.catalog import CardCatalog
from taro.engine import ReadingEngine
from taro.formatter import ReadingFormatter
from taro.renderer import SpreadRenderer
from taro.spreads import SPREAD_INFO, SpreadKind, display_name, known_keys

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000
CHUNK_LIMIT = 1900
FULL_DECK = 78

NO_QUESTION = "No question"
LOADING_TEXT = "❌ Card data is still loading. Please wait a moment and try again."
NOT_FOUND_TEXT = "❌ That spread was not found."
IMAGE_FAILED_TEXT = "\n\n⚠️ Could not generate the spread image. Showing text only."
ERROR_TEXT = "❌ Something went wrong. Please wait a little and try again."


MARKUP_WINDOW = 10


def _safe_cut(line: str, limit: int) -> int:
    """Largest cut position <= limit that is not inside an HTML entity or tag."""
    cut = limit
    for opener, closer in (("&", ";"), ("<", ">")):
        start = line.rfind(opener, max(1, cut - MARKUP_WINDOW), cut)
        if start > 0 and line.find(closer, start, cut) == -1:
            cut = start
    return cut


def _cut_line(line: str, limit: int) -> List[str]:
    pieces = []
    while len(line) > limit:
        cut = _safe_cut(line, limit)
        pieces.append(line[:cut])
        line = line[cut:]
    pieces.append(line)
    return pieces


def split_message(text: str, limit: int = CHUNK_LIMIT) -> List[str]:
    """Splits on line boundaries into chunks of at most `limit` characters.
    A single line longer than `limit` is cut into pieces, never inside
    an HTML entity or tag."""
    chunks = []
    lines: List[str] = []
    size = 0

    for line in text.split("\n"):
        pieces = _cut_line(line, limit)
        for piece in pieces:
            extra = len(piece) + (1 if lines else 0)
            if lines and size + extra > limit:
                chunks.append("\n".join(lines))
                lines, size = [], 0
                extra = len(piece)
            lines.append(piece)
            size += extra

    if lines:
        chunks.append("\n".join(lines))
    return [c for c in chunks if c.strip()]


class CommandRouter:
    def __init__(
        self,
        catalog: CardCatalog,
        engine: ReadingEngine,
        formatter: ReadingFormatter,
        renderer: SpreadRenderer,
        prefix: str = "/divine",
        started_at: Optional[float] = None,
    ):
        self.catalog = catalog
        self.engine = engine
        self.formatter = formatter
        self.renderer = renderer
        self.prefix = prefix
        self.started_at = started_at if started_at is not None else time.monotonic()

    def uptime_seconds(self) -> float:
        return time.monotonic() - self.started_at

    def is_command(self, event: InboundMessage) -> bool:
        if event.is_bot:
            return False
        first = event.text.split(" ", 1)[0]
        # "/divine@SomeBot" in group chats
        return first.split("@", 1)[0] == self.prefix

    async def handle(self, event: InboundMessage, transport: ChatTransport) -> bool:
        if not self.is_command(event):
            return False

        args = event.text.split(" ")
        command = args[1] if len(args) > 1 else ""
        logger.debug("Received command %r from %s", command, event.author_id)

        try:
            await self.dispatch(command, args[2:], event.author_id, transport)
        except Exception:
            logger.exception("Error processing command %r", command)
            await transport.reply(ERROR_TEXT)
        return True

    async def dispatch(self, command: str, rest: List[str], user_id: str, transport: ChatTransport):
        if command == "help":
            await transport.reply(self.help_text())
        elif command == "spreads":
            await transport.reply(self.spreads_text())
        elif command == "status":
            await transport.reply(self.status_text())
        elif command == "history":
            records = await self.engine.history(user_id)
            await transport.reply(self.formatter.format_history(records))
        elif command in known_keys() or command in self.catalog.spreads:
            question = " ".join(rest).strip() or NO_QUESTION
            await self.divine(command, question, user_id, transport)
        else:
            await transport.reply(
                f"❌ Unknown command. Send <code>{escape(self.prefix)} help</code> for the list."
            )

    async def divine(self, spread_name: str, question: str, user_id: str, transport: ChatTransport):
        if not self.catalog.cards:
            await transport.reply(LOADING_TEXT)
            return

        logger.info("Performing %s reading for %s", spread_name, user_id)
        performed = await self.engine.perform_reading(spread_name, question, user_id)
        if performed is None:
            await transport.reply(NOT_FOUND_TEXT)
            return

        text = self.formatter.format_reading(performed.reading)
        image = await self.renderer.render(performed.reading)
        await self.send_reading(transport, text, image, f"{spread_name}_spread.png")

    async def send_reading(
        self, transport: ChatTransport, text: str, image: Optional[bytes], image_name: str
    ):
        if image is None:
            logger.warning("Image generation failed, sending text only")
            text += IMAGE_FAILED_TEXT

        if len(text) <= MAX_MESSAGE_LENGTH:
            await transport.reply(text, image, image_name)
            return

        chunks = split_message(text)
        await transport.reply(chunks[0], image, image_name)
        for chunk in chunks[1:]:
            await transport.send_followup(chunk)

    # ======================
    #   TEXTS
    # ======================
    def help_text(self) -> str:
        p = escape(self.prefix)
        lines = ["🔮 <b>TarotBot commands</b>", "", "<b>Readings:</b>"]
        for kind, info in SPREAD_INFO.items():
            lines.append(f"<code>{p} {kind.value} [question]</code> - {info.display_name}: {info.description}")
        lines += [
            "",
            "<b>Other:</b>",
            f"<code>{p} help</code> - show this help",
            f"<code>{p} spreads</code> - list available spreads",
            f"<code>{p} history</code> - your recent readings",
            f"<code>{p} status</code> - bot status",
            "",
            "✨ Every reading comes with a picture of the spread; reversed cards are shown upside down.",
        ]
        return "\n".join(lines)

    def spreads_text(self) -> str:
        if not self.catalog.spreads:
            return "🔮 No spreads are loaded yet."

        lines = ["🔮 <b>Available spreads:</b>"]
        for key, spread in self.catalog.spreads.items():
            lines.append(
                f"• <b>{escape(display_name(key))}</b> ({escape(key)}): {spread.card_count} cards"
            )
        return "\n".join(lines)

    def status_text(self) -> str:
        custom = sum(
            1 for key in self.catalog.spreads if SpreadKind.from_key(key) is SpreadKind.CUSTOM
        )
        return (
            "🤖 <b>Bot status:</b>\n"
            f"Uptime: {int(self.uptime_seconds() // 60)} min\n"
            f"Cards: {len(self.catalog.cards)}/{FULL_DECK}\n"
            f"Spreads: {len(self.catalog.spreads)} ({custom} custom)"
        )
