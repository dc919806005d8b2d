"""Item lifecycle states.

A presentation-only projection of an item's signals. Scoring computes decay
and quiet suppression on its own and never reads these states.
"""

from enum import Enum

from orbit.config import DEFAULTS, FADING_THRESHOLD
from orbit.models import Context, Item
from orbit.scoring import SECONDS_PER_HOUR, decay_factor, pin_active, quiet_active


class ItemState(str, Enum):
    NEW = "new"             # within the novelty window
    ACTIVE = "active"
    QUIETED = "quieted"     # user asked for a break
    DECAYING = "decaying"   # ignored or never touched
    ARCHIVED = "archived"   # removed by the user


ALLOWED_TRANSITIONS = {
    ItemState.NEW: {ItemState.ACTIVE, ItemState.QUIETED, ItemState.ARCHIVED},
    ItemState.ACTIVE: {ItemState.QUIETED, ItemState.DECAYING, ItemState.ARCHIVED},
    ItemState.QUIETED: {ItemState.ACTIVE, ItemState.DECAYING, ItemState.ARCHIVED},
    ItemState.DECAYING: {ItemState.ACTIVE, ItemState.QUIETED, ItemState.ARCHIVED},
    ItemState.ARCHIVED: set(),
}


def can_transition(src: ItemState, dst: ItemState) -> bool:
    return src == dst or dst in ALLOWED_TRANSITIONS[src]


def derive_state(item: Item, context: Context, removed: bool = False) -> ItemState:
    """Label an item for display. Does not touch the item.

    Removed items are deleted from storage, so ``removed`` is only known to the
    caller that did the removal (see ``store.remove``).
    """
    if removed:
        return ItemState.ARCHIVED
    if quiet_active(item, context):
        return ItemState.QUIETED
    age_hours = (context.now - item.signals.created_at) / SECONDS_PER_HOUR
    if age_hours < DEFAULTS.novelty_hours:
        return ItemState.NEW
    if decay_factor(item, context) > FADING_THRESHOLD and not pin_active(item, context):
        return ItemState.DECAYING
    return ItemState.ACTIVE
