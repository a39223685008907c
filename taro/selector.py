# taro/selector.py

import random
from typing import List, Optional

from taro.models import DrawnCard, Orientation


class Selector:
    def __init__(self, catalog, rng: Optional[random.Random] = None):
        self.catalog = catalog
        self.rng = rng or random.Random()

    def select_random_cards(self, count: int) -> List[DrawnCard]:
        """
        Draws up to `count` distinct cards without replacement.
        Each card gets its own fair coin flip for orientation.
        Returns fewer cards when the deck is smaller than `count`.
        """
        pool = list(self.catalog.cards)
        drawn = []

        while len(drawn) < count and pool:
            card = pool.pop(self.rng.randrange(len(pool)))
            reversed_ = self.rng.random() < 0.5
            drawn.append(
                DrawnCard(
                    card=card,
                    orientation=Orientation.REVERSED if reversed_ else Orientation.UPRIGHT,
                )
            )

        return drawn
