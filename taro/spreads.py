# taro/spreads.py
# Known spread kinds, their display names and role headings.
# Adding a spread means adding an enum member and a SPREAD_INFO entry.

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class SpreadKind(Enum):
    ONE = "one"
    THREE = "three"
    CELT = "celt"
    KANTAN = "kantan"
    NITAKU = "nitaku"
    HORSE = "horse"
    CUSTOM = "custom"

    @classmethod
    def from_key(cls, key: str) -> "SpreadKind":
        for kind in cls:
            if kind is not cls.CUSTOM and kind.value == key:
                return kind
        return cls.CUSTOM


@dataclass(frozen=True)
class SpreadInfo:
    display_name: str
    short_name: str
    description: str
    roles: Optional[Tuple[str, ...]] = None


# ======================
#   KNOWN SPREADS
# ======================
SPREAD_INFO: Dict[SpreadKind, SpreadInfo] = {
    SpreadKind.ONE: SpreadInfo(
        "One Card Spread",
        "One Card",
        "a single card for a quick answer",
    ),
    SpreadKind.THREE: SpreadInfo(
        "Three Card Spread",
        "Three Cards",
        "past, present and future",
    ),
    SpreadKind.CELT: SpreadInfo(
        "Celtic Cross Spread",
        "Celtic Cross",
        "ten cards, the full picture",
    ),
    SpreadKind.KANTAN: SpreadInfo(
        "Simple Spread",
        "Simple",
        "cause, result and remedy",
    ),
    SpreadKind.NITAKU: SpreadInfo(
        "Two Choices Spread",
        "Two Choices",
        "compare option A with option B",
        roles=(
            "⚖️ Current situation",
            "🅰️ Option A: now",
            "🅱️ Option B: now",
            "🅰️ Option A: near future",
            "🅱️ Option B: near future",
            "🅰️ Option A: outcome",
            "🅱️ Option B: outcome",
            "💡 Advice",
        ),
    ),
    SpreadKind.HORSE: SpreadInfo(
        "Horseshoe Spread",
        "Horseshoe",
        "seven cards, the overall flow of the situation",
        roles=(
            "📅 Past",
            "🕐 Present",
            "🔮 Near future",
            "💡 Advice",
            "👥 Surroundings (the other person)",
            "⚠️ Obstacle",
            "🎯 Final outcome",
        ),
    ),
}

_undescribed = set(SpreadKind) - {SpreadKind.CUSTOM} - set(SPREAD_INFO)
if _undescribed:
    raise RuntimeError(f"Spread kinds without info: {sorted(k.value for k in _undescribed)}")


def spread_info(key: str) -> Optional[SpreadInfo]:
    kind = SpreadKind.from_key(key)
    if kind is SpreadKind.CUSTOM:
        return None
    return SPREAD_INFO[kind]


def display_name(key: str) -> str:
    info = spread_info(key)
    return info.display_name if info else key


def short_name(key: str) -> str:
    info = spread_info(key)
    return info.short_name if info else key


def role_headings(key: str, slot_count: int) -> Optional[Tuple[str, ...]]:
    """Role headings by slot index, or None when the spread has no template
    or the reading does not have exactly the template's number of slots."""
    info = spread_info(key)
    if info is None or info.roles is None:
        return None
    if len(info.roles) != slot_count:
        return None
    return info.roles


def known_keys() -> Tuple[str, ...]:
    return tuple(k.value for k in SpreadKind if k is not SpreadKind.CUSTOM)
