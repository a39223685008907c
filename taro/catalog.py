# taro/catalog.py
# Cards and spread definitions loaded from the tabular store.

import asyncio
import logging
from typing import Dict, List, Mapping, Optional, Tuple

from services.store import StoreError, TabularStore
from taro.models import Card, SpreadDefinition

logger = logging.getLogger(__name__)

CARDS_RANGE = "Cards!A:E"
SPREADS_RANGE = "Spreads!A:K"

DEFAULT_MEANING = "Card meaning"

LOAD_ATTEMPTS = 3
LOAD_RETRY_DELAY = 5.0


def _cell(row, index: int) -> str:
    if index < len(row) and row[index] is not None:
        return str(row[index])
    return ""


def parse_cards(rows) -> List[Card]:
    """Card rows without the header: id, name, type, meaning, image ref."""
    cards = []
    for row in rows:
        cards.append(
            Card(
                id=int(_cell(row, 0)),
                name=_cell(row, 1),
                type=_cell(row, 2),
                meaning=_cell(row, 3) or DEFAULT_MEANING,
                image_ref=_cell(row, 4).strip() or None,
            )
        )
    return cards


def parse_spreads(rows) -> Dict[str, SpreadDefinition]:
    """Spread rows without the header: key, then position labels."""
    spreads = {}
    for row in rows:
        key = _cell(row, 0)
        if not key:
            continue
        labels = tuple(str(p) for p in row[1:] if p and str(p).strip())
        spreads[key] = SpreadDefinition(name=key, position_labels=labels)
    return spreads


class CardCatalog:
    def __init__(self, store: TabularStore):
        self.store = store
        self._cards: Tuple[Card, ...] = ()
        self._spreads: Dict[str, SpreadDefinition] = {}

    @property
    def cards(self) -> Tuple[Card, ...]:
        return self._cards

    @property
    def spreads(self) -> Mapping[str, SpreadDefinition]:
        return self._spreads

    @property
    def is_loaded(self) -> bool:
        return bool(self._cards) and bool(self._spreads)

    def get_spread(self, name: str) -> Optional[SpreadDefinition]:
        return self._spreads.get(name)

    async def load(self) -> bool:
        """
        Reads both tables and swaps them in together.
        On any failure the previous cards and spreads stay in place.
        """
        try:
            card_rows = await self.store.read_range(CARDS_RANGE)
            spread_rows = await self.store.read_range(SPREADS_RANGE)
        except StoreError as e:
            logger.error("Error loading catalog: %s", e)
            return False
        except Exception:
            logger.exception("Unexpected error loading catalog")
            return False

        try:
            if len(card_rows) <= 1:
                logger.error("Cards sheet has no data rows")
                return False
            if len(spread_rows) <= 1:
                logger.error("Spreads sheet has no data rows")
                return False

            cards = parse_cards(card_rows[1:])
            spreads = parse_spreads(spread_rows[1:])
        except ValueError as e:
            logger.error("Malformed catalog row: %s", e)
            return False
        except Exception:
            logger.exception("Unexpected catalog data")
            return False

        self._cards = tuple(cards)
        self._spreads = spreads
        logger.info("Loaded %d cards", len(self._cards))
        logger.info("Loaded spreads: %s", list(self._spreads))
        return True

    async def load_with_retry(
        self, attempts: int = LOAD_ATTEMPTS, delay: float = LOAD_RETRY_DELAY
    ) -> bool:
        for attempt in range(1, attempts + 1):
            if await self.load():
                return True

            left = attempts - attempt
            if left:
                logger.warning("Retrying data load... (%d attempts left)", left)
                await asyncio.sleep(delay)

        logger.error("Failed to load data after %d attempts", attempts)
        return False
