"""Orbit store — ties the engine, the context and persistence together.

State is passed by value: every operation takes an ``OrbitState`` and returns
a new one. Each mutation is written through to the database before the
collection is re-ranked, so callers only ever hold a consistent snapshot.
"""

from dataclasses import dataclass, replace
from typing import Callable, Optional

from orbit.config import OrbitConfig
from orbit.lifecycle import ItemState, derive_state
from orbit.models import Context, InteractionKind, Item, create_item
from orbit.ranking import rank_items
from orbit.signals import pin_item, quiet_item, record_ignored, record_interaction, unpin_item
from orbit.storage import ItemDB


class ItemNotFoundError(KeyError):
    """No item in the collection matches the given id."""

    def __str__(self):
        return f"No item with id {self.args[0]!r}"


@dataclass(frozen=True)
class OrbitState:
    items: tuple[Item, ...] = ()
    visible: tuple[Item, ...] = ()
    context: Optional[Context] = None
    cycle_started_at: Optional[float] = None
    archived: tuple[Item, ...] = ()    # removed during this session, kept for labelling only


def _rank(state: OrbitState, items, context: Context, config: OrbitConfig) -> OrbitState:
    result = rank_items(
        items,
        context,
        max_visible=config.max_visible,
        weights=config.weights,
        decay_days=config.decay_days,
    )
    return replace(state, items=result.all, visible=result.visible, context=context)


def initialize(db: ItemDB, context: Context, config: OrbitConfig = None,
               cycle_started_at: Optional[float] = None) -> OrbitState:
    """Load the collection and compute the first ranking."""
    config = config or OrbitConfig()
    state = OrbitState(cycle_started_at=cycle_started_at if cycle_started_at is not None else context.now)
    return _rank(state, db.load(), context, config)


def recompute(state: OrbitState, context: Context, config: OrbitConfig = None) -> OrbitState:
    """Re-rank with a fresh context. Safe to call repeatedly."""
    return _rank(state, state.items, context, config or OrbitConfig())


def find_item(state: OrbitState, item_id: str) -> Item:
    """Look up an item by id or unique id prefix."""
    matches = [item for item in state.items if item.id == item_id]
    if not matches:
        matches = [item for item in state.items if item.id.startswith(item_id)]
    if len(matches) != 1:
        raise ItemNotFoundError(item_id)
    return matches[0]


def _apply(state: OrbitState, db: ItemDB, item_id: str, change: Callable[[Item], Item],
           context: Context, config: OrbitConfig) -> OrbitState:
    item = find_item(state, item_id)
    updated = change(item)
    db.upsert(updated.id, updated)
    items = [updated if i.id == item.id else i for i in state.items]
    return _rank(state, items, context, config or OrbitConfig())


def add_item(state: OrbitState, db: ItemDB, title: str, context: Context, detail: str = "",
             url: str = "", config: OrbitConfig = None) -> OrbitState:
    """Create an item, record that the user has seen it, and re-rank."""
    item = create_item(title, detail, url, now=context.now)
    tracked = record_interaction(item, InteractionKind.SEEN, context)
    db.upsert(tracked.id, tracked)
    return _rank(state, list(state.items) + [tracked], context, config or OrbitConfig())


def mark_seen(state, db, item_id, context, config=None) -> OrbitState:
    return _apply(state, db, item_id,
                  lambda item: record_interaction(item, InteractionKind.SEEN, context),
                  context, config)


def mark_opened(state, db, item_id, context, config=None) -> OrbitState:
    return _apply(state, db, item_id,
                  lambda item: record_interaction(item, InteractionKind.OPENED, context),
                  context, config)


def acknowledge(state, db, item_id, context, config=None) -> OrbitState:
    """Acknowledging an item counts as opening it."""
    return mark_opened(state, db, item_id, context, config)


def dismiss(state, db, item_id, context, config=None) -> OrbitState:
    return _apply(state, db, item_id,
                  lambda item: record_interaction(item, InteractionKind.DISMISSED, context),
                  context, config)


def quiet(state, db, item_id, context, hours: float = None, config: OrbitConfig = None) -> OrbitState:
    config = config or OrbitConfig()
    if hours is None:
        hours = config.quiet_hours_default
    return _apply(state, db, item_id, lambda item: quiet_item(item, hours, context), context, config)


def pin(state, db, item_id, context, hours: float = None, config: OrbitConfig = None) -> OrbitState:
    return _apply(state, db, item_id, lambda item: pin_item(item, hours, context), context, config)


def unpin(state, db, item_id, context, config=None) -> OrbitState:
    return _apply(state, db, item_id, unpin_item, context, config)


def remove(state: OrbitState, db: ItemDB, item_id: str, context: Context,
           config: OrbitConfig = None) -> OrbitState:
    """Delete an item for good. The only way an item ever leaves the collection."""
    item = find_item(state, item_id)
    db.delete(item.id)
    items = [i for i in state.items if i.id != item.id]
    state = replace(state, archived=state.archived + (item,))
    return _rank(state, items, context, config or OrbitConfig())


def close_cycle(state: OrbitState, db: ItemDB, context: Context,
                config: OrbitConfig = None) -> OrbitState:
    """End a ranking cycle.

    Every visible item with no recorded interaction since the cycle started
    has its ignored streak bumped. The next cycle starts at ``context.now``.
    """
    since = state.cycle_started_at
    visible_ids = {item.id for item in state.visible}
    items = []
    for item in state.items:
        last = item.signals.last_seen_at
        if item.id in visible_ids and (last is None or since is None or last < since):
            item = record_ignored(item)
            db.upsert(item.id, item)
        items.append(item)
    state = replace(state, cycle_started_at=context.now)
    return _rank(state, items, context, config or OrbitConfig())


def item_states(state: OrbitState) -> dict[str, ItemState]:
    """Lifecycle label for every item at the state's context, removed items included."""
    if state.context is None:
        return {}
    labels = {item.id: derive_state(item, state.context, removed=True) for item in state.archived}
    labels.update((item.id, derive_state(item, state.context)) for item in state.items)
    return labels
