# taro/engine.py
# Draws a reading for a spread, stores it in the background, reads history back.

import asyncio
import logging
from datetime import datetime, timezone
from typing import List, NamedTuple, Optional, Set

from services.store import StoreError, TabularStore
from taro.catalog import CardCatalog
from taro.models import Reading, ReadingRecord, Slot
from taro.selector import Selector

logger = logging.getLogger(__name__)

READINGS_RANGE = "Readings!A:E"
HISTORY_LIMIT = 5

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class PerformedReading(NamedTuple):
    reading: Reading
    # resolves True once the row is stored, False if storing failed
    persisted: "asyncio.Task[bool]"


class ReadingEngine:
    def __init__(self, catalog: CardCatalog, selector: Selector, store: TabularStore):
        self.catalog = catalog
        self.selector = selector
        self.store = store
        self._pending: Set[asyncio.Task] = set()

    async def perform_reading(
        self, spread_name: str, question: str, requester_id: str = "unknown"
    ) -> Optional[PerformedReading]:
        spread = self.catalog.get_spread(spread_name)
        if spread is None:
            return None

        drawn = self.selector.select_random_cards(spread.card_count)
        reading = Reading(
            spread_name=spread.name,
            question=question,
            requester_id=requester_id,
            slots=tuple(
                Slot(label=label, card=card)
                for label, card in zip(spread.position_labels, drawn)
            ),
            created_at=datetime.now(timezone.utc),
        )

        task = asyncio.create_task(self.save_reading(reading))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return PerformedReading(reading, task)

    async def save_reading(self, reading: Reading) -> bool:
        try:
            await self.store.append_row(READINGS_RANGE, reading.to_row())
        except StoreError as e:
            logger.error("Error saving reading for %s: %s", reading.requester_id, e)
            return False
        except Exception:
            logger.exception("Unexpected error saving reading")
            return False
        return True

    async def drain(self):
        """Waits for readings that are still being stored."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def history(self, requester_id: str, limit: int = HISTORY_LIMIT) -> List[ReadingRecord]:
        try:
            rows = await self.store.read_range(READINGS_RANGE)
        except StoreError as e:
            logger.error("Error getting reading history: %s", e)
            return []

        if len(rows) <= 1:
            return []

        records = [
            ReadingRecord.from_row(row)
            for row in rows[1:]
            if len(row) > 1 and row[1] == requester_id
        ]
        records.sort(key=lambda r: r.created_at or _OLDEST, reverse=True)
        return records[:limit]
