# taro/formatter.py
# Reading and history text for chat replies (HTML parse mode).

from html import escape
from typing import Sequence
from zoneinfo import ZoneInfo

from taro.models import Reading, ReadingRecord, Slot
from taro.spreads import display_name, role_headings, short_name

DATE_FORMAT = "%Y/%m/%d %H:%M"


class ReadingFormatter:
    def __init__(self, timezone: str = "Asia/Tokyo"):
        self.tz = ZoneInfo(timezone)

    @staticmethod
    def _card_line(slot: Slot) -> str:
        card = slot.card
        return (
            f"{escape(card.name)} ({card.orientation.label})\n"
            f"　└ <i>{escape(card.meaning)}</i>\n\n"
        )

    def format_reading(self, reading: Reading) -> str:
        question = escape(reading.question)
        text = f"🔮 <b>{escape(display_name(reading.spread_name))}</b> - {question}\n\n"

        roles = role_headings(reading.spread_name, len(reading.slots))
        if roles:
            for heading, slot in zip(roles, reading.slots):
                text += f"<b>{escape(heading)}</b>\n" + self._card_line(slot)
        else:
            for slot in reading.slots:
                text += f"<b>{escape(slot.label)}</b>: " + self._card_line(slot)

        text += f"Question: {question}"
        return text

    def format_date(self, record: ReadingRecord) -> str:
        created = record.created_at
        if created is None:
            return record.timestamp
        return created.astimezone(self.tz).strftime(DATE_FORMAT)

    def format_history(self, records: Sequence[ReadingRecord]) -> str:
        if not records:
            return "📋 <b>Reading history</b>\n\nNo readings yet."

        text = f"📋 <b>Reading history</b> (latest {len(records)})\n\n"
        for i, record in enumerate(records, start=1):
            text += f"<b>{i}.</b> {escape(self.format_date(record))}\n"
            text += (
                f"　{escape(short_name(record.spread_name))} - "
                f"{escape(record.question)}\n\n"
            )
        return text
