"""Per-item interaction histograms.

Hour and day histograms are fixed-size lists (24 and 7 buckets); place and
device histograms map a label to a count. All lookups default to zero and
all writes return new containers.
"""

HOURS = 24
DAYS = 7


def empty_hours() -> list[int]:
    return [0] * HOURS


def empty_days() -> list[int]:
    return [0] * DAYS


def bucket(histogram, key) -> float:
    """Zero-default lookup for either histogram shape."""
    if isinstance(histogram, dict):
        return histogram.get(key, 0)
    if isinstance(key, int) and 0 <= key < len(histogram):
        return histogram[key]
    return 0


def total(histogram) -> float:
    values = histogram.values() if isinstance(histogram, dict) else histogram
    return sum(values)


def share(histogram, key) -> float:
    """Fraction of all recorded weight that falls in ``key``. 0.0 for an empty histogram."""
    t = total(histogram)
    if t <= 0:
        return 0.0
    return bucket(histogram, key) / t


def increment(histogram, key, amount: int = 1):
    """Return a copy of ``histogram`` with ``key`` bumped by ``amount``."""
    if isinstance(histogram, dict):
        updated = dict(histogram)
        updated[key] = updated.get(key, 0) + amount
        return updated
    updated = list(histogram)
    updated[key % len(updated)] += amount
    return updated


def neighbours(hour: int) -> tuple[int, int]:
    """The hours either side of ``hour``, wrapping at midnight."""
    return (hour - 1) % HOURS, (hour + 1) % HOURS


def check_weights(name: str, histogram) -> list[str]:
    """Return problems with a histogram (negative weights), empty if clean."""
    items = histogram.items() if isinstance(histogram, dict) else enumerate(histogram)
    return [f"{name}[{k!r}] is negative ({v})" for k, v in items if v < 0]
