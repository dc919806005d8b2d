"""Signal tracker — turns observed events into updated item signals.

Every function here is pure: it takes an item and returns a new one.
Histograms are plain additive counters; nothing is normalised at write time.
"""

from typing import Optional, Union

from orbit import histogram
from orbit.models import Context, InteractionKind, Item

_COUNTERS = {
    InteractionKind.SEEN: "seen_count",
    InteractionKind.OPENED: "opened_count",
    InteractionKind.DISMISSED: "dismissed_count",
}


def record_interaction(item: Item, kind: Union[InteractionKind, str], context: Context) -> Item:
    """Record a seen/opened/dismissed event at ``context``.

    Bumps the matching counter and the hour, day, place and device buckets
    by one each. Only ``opened`` clears the ignored streak; passively seeing
    an item does not count as engagement.
    """
    kind = InteractionKind(kind)
    s = item.signals
    counter = _COUNTERS[kind]

    changes = {
        "last_seen_at": context.now,
        counter: getattr(s, counter) + 1,
        "hour_histogram": histogram.increment(s.hour_histogram, context.hour),
        "day_histogram": histogram.increment(s.day_histogram, context.day),
        "place_histogram": histogram.increment(s.place_histogram, context.place),
        "device_histogram": histogram.increment(s.device_histogram, context.device),
    }
    if kind is InteractionKind.OPENED:
        changes["ignored_streak"] = 0

    return item.with_signals(**changes)


def record_ignored(item: Item) -> Item:
    """One more ranking cycle in which the item was surfaced and left alone."""
    return item.with_signals(ignored_streak=item.signals.ignored_streak + 1)


def pin_item(item: Item, hours: Optional[float] = None, context: Optional[Context] = None) -> Item:
    """Pin an item, optionally only for ``hours`` from ``context.now``."""
    if hours is None:
        return item.with_signals(is_pinned=True, pin_until=None)
    if hours <= 0:
        raise ValueError(f"Pin duration must be positive, got {hours}")
    if context is None:
        raise ValueError("A context is required for a timed pin")
    return item.with_signals(is_pinned=True, pin_until=context.now + hours * 3600.0)


def unpin_item(item: Item) -> Item:
    return item.with_signals(is_pinned=False, pin_until=None)


def quiet_item(item: Item, hours: float, context: Context) -> Item:
    """Suppress an item until ``hours`` after ``context.now``."""
    if hours <= 0:
        raise ValueError(f"Quiet duration must be positive, got {hours}")
    return item.with_signals(quiet_until=context.now + hours * 3600.0)
