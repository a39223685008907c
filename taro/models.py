# taro/models.py
# Plain data: card, drawn card, spread, reading, stored history row.

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple


class Orientation(Enum):
    UPRIGHT = "upright"
    REVERSED = "reversed"

    @property
    def label(self) -> str:
        return "Upright" if self is Orientation.UPRIGHT else "Reversed"

    @property
    def glyph(self) -> str:
        return "U" if self is Orientation.UPRIGHT else "R"

    @property
    def is_reversed(self) -> bool:
        return self is Orientation.REVERSED


@dataclass(frozen=True)
class Card:
    id: int
    name: str
    type: str
    meaning: str
    image_ref: Optional[str] = None


@dataclass(frozen=True)
class DrawnCard:
    card: Card
    orientation: Orientation

    @property
    def id(self) -> int:
        return self.card.id

    @property
    def name(self) -> str:
        return self.card.name

    @property
    def meaning(self) -> str:
        return self.card.meaning


@dataclass(frozen=True)
class SpreadDefinition:
    name: str
    position_labels: Tuple[str, ...]

    @property
    def card_count(self) -> int:
        return len(self.position_labels)


@dataclass(frozen=True)
class Slot:
    label: str
    card: DrawnCard


@dataclass(frozen=True)
class Reading:
    spread_name: str
    question: str
    requester_id: str
    slots: Tuple[Slot, ...]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def summary(self) -> str:
        """Value for the resultSummary column: `label:name(Orientation), ...`"""
        return ", ".join(
            f"{s.label}:{s.card.name}({s.card.orientation.label})" for s in self.slots
        )

    def to_row(self) -> list:
        return [
            self.created_at.isoformat(),
            self.requester_id,
            self.question,
            self.spread_name,
            self.summary(),
        ]


@dataclass(frozen=True)
class ReadingRecord:
    timestamp: str
    requester_id: str
    question: str
    spread_name: str
    result_summary: str

    @classmethod
    def from_row(cls, row) -> "ReadingRecord":
        cells = list(row) + [""] * (5 - len(row))
        return cls(*[(c or "") for c in cells[:5]])

    @property
    def created_at(self) -> Optional[datetime]:
        try:
            value = datetime.fromisoformat(self.timestamp.replace("Z", "+00:00"))
        except ValueError:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value
