"""Fixed planning grid layout."""

from datetime import time
from enum import Enum

CANCELLED_PREFIX = "Annulé – "

BREAK_ACTIVITY = "pause"
WILDCARD_TOKEN = "tous"
ACTIVITY_SEPARATORS = ("–", "—")
NAME_SEPARATOR = ","

SLOT_TIMES = {
    1: (time(9, 0), time(10, 0)),
    2: (time(10, 0), time(11, 0)),
    3: (time(11, 0), time(12, 0)),
    4: (time(14, 0), time(15, 0)),
    5: (time(15, 0), time(16, 0)),
}

WEEKDAY_NAMES = {
    1: "Lundi",
    2: "Mardi",
    3: "Mercredi",
    4: "Jeudi",
    5: "Vendredi",
}
WEEKDAY_BY_SHEET = {name.lower(): weekday for weekday, name in WEEKDAY_NAMES.items()}

WEDNESDAY = 3
SLOTS_PER_WEEKDAY = {1: 5, 2: 5, 3: 3, 4: 5, 5: 5}


class Block(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"


BLOCK_SLOTS = {
    Block.MORNING: (1, 2, 3),
    Block.AFTERNOON: (4, 5),
}


def weekday_slots(weekday: int) -> range:
    """Slot indexes of a weekday."""
    return range(1, SLOTS_PER_WEEKDAY[weekday] + 1)


def weekday_blocks(weekday: int) -> tuple:
    """Daily blocks a child must be covered in."""
    if weekday == WEDNESDAY:
        return (Block.MORNING,)
    return (Block.MORNING, Block.AFTERNOON)


def slot_block(slot: int) -> Block:
    for block, slots in BLOCK_SLOTS.items():
        if slot in slots:
            return block
    raise ValueError(f"Unknown slot {slot}")
