"""Core types for the Orbit engine: items, their signals, and context snapshots.

Items are treated as values. Every operation that changes an item returns a
new one (via ``dataclasses.replace``) and leaves the original untouched.
"""

import re
import time
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from orbit import histogram
from orbit.config import MAX_TITLE_LENGTH, UNKNOWN_PLACE, DEFAULT_DEVICE


class ItemContractError(ValueError):
    """An item record is structurally broken (missing or invalid signal fields)."""
    pass


class InteractionKind(str, Enum):
    SEEN = "seen"
    OPENED = "opened"
    DISMISSED = "dismissed"


class ReasonKind(str, Enum):
    TIME = "time"
    PLACE = "place"
    DEVICE = "device"
    RECENCY = "recency"
    FREQUENCY = "frequency"
    PINNED = "pinned"
    NOVELTY = "novelty"
    FADING = "fading"
    QUIETED = "quieted"


_REASON_TEXT = {
    ReasonKind.TIME: "matches your usual time",
    ReasonKind.PLACE: "often seen at {label}",
    ReasonKind.DEVICE: "fits {label} context",
    ReasonKind.RECENCY: "recently on your mind",
    ReasonKind.FREQUENCY: "frequently accessed",
    ReasonKind.PINNED: "pinned",
    ReasonKind.NOVELTY: "newly added",
    ReasonKind.FADING: "fading from focus",
    ReasonKind.QUIETED: "quieted",
}


@dataclass(frozen=True)
class Reason:
    """One explanation for a score. ``label`` carries the place/device name where relevant."""
    kind: ReasonKind
    label: Optional[str] = None

    def describe(self) -> str:
        return _REASON_TEXT[self.kind].format(label=self.label or "")

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "label": self.label}

    @classmethod
    def from_dict(cls, data: dict) -> "Reason":
        return cls(kind=ReasonKind(data["kind"]), label=data.get("label"))


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------

def normalize_place(place) -> str:
    """Lower-case and trim a place label; anything empty or non-text becomes 'unknown'."""
    if not isinstance(place, str):
        return UNKNOWN_PLACE
    place = place.strip().lower()
    return place or UNKNOWN_PLACE


def normalize_device(device) -> str:
    if not isinstance(device, str) or not device.strip():
        return DEFAULT_DEVICE
    return device.strip().lower()


@dataclass(frozen=True)
class Context:
    """Snapshot of time, place and device for one ranking pass.

    Place and device labels are normalised on construction, so a blank or
    oddly-cased place always takes the "unknown" path.
    """
    now: float
    hour: int
    day: int                       # Monday = 0
    device: str = DEFAULT_DEVICE
    place: str = UNKNOWN_PLACE
    session_id: str = ""

    def __post_init__(self):
        object.__setattr__(self, "place", normalize_place(self.place))
        object.__setattr__(self, "device", normalize_device(self.device))

    @classmethod
    def at(cls, now: float, device: str = DEFAULT_DEVICE, place: str = UNKNOWN_PLACE,
           session_id: str = "") -> "Context":
        """Build a context for ``now``, deriving hour and weekday from local time."""
        dt = datetime.fromtimestamp(now)
        return cls(now=now, hour=dt.hour, day=dt.weekday(), device=device,
                   place=place, session_id=session_id)


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

_REQUIRED_SIGNALS = (
    "created_at", "last_seen_at", "seen_count", "opened_count", "dismissed_count",
    "hour_histogram", "day_histogram", "place_histogram", "device_histogram",
    "ignored_streak", "is_pinned", "pin_until",
)


@dataclass
class ItemSignals:
    created_at: float
    last_seen_at: Optional[float] = None
    seen_count: int = 0
    opened_count: int = 0
    dismissed_count: int = 0
    hour_histogram: list[int] = field(default_factory=histogram.empty_hours)
    day_histogram: list[int] = field(default_factory=histogram.empty_days)
    place_histogram: dict[str, int] = field(default_factory=dict)
    device_histogram: dict[str, int] = field(default_factory=dict)
    ignored_streak: int = 0
    is_pinned: bool = False
    pin_until: Optional[float] = None
    quiet_until: Optional[float] = None

    def __post_init__(self):
        problems = []
        if len(self.hour_histogram) != histogram.HOURS:
            problems.append(f"hour_histogram has {len(self.hour_histogram)} buckets, expected 24")
        if len(self.day_histogram) != histogram.DAYS:
            problems.append(f"day_histogram has {len(self.day_histogram)} buckets, expected 7")
        problems += histogram.check_weights("hour_histogram", self.hour_histogram)
        problems += histogram.check_weights("day_histogram", self.day_histogram)
        problems += histogram.check_weights("place_histogram", self.place_histogram)
        problems += histogram.check_weights("device_histogram", self.device_histogram)
        for name in ("seen_count", "opened_count", "dismissed_count", "ignored_streak"):
            if getattr(self, name) < 0:
                problems.append(f"{name} is negative")
        if problems:
            raise ItemContractError("; ".join(problems))

    @property
    def has_history(self) -> bool:
        return self.last_seen_at is not None

    def to_dict(self) -> dict:
        return {
            "created_at": self.created_at,
            "last_seen_at": self.last_seen_at,
            "seen_count": self.seen_count,
            "opened_count": self.opened_count,
            "dismissed_count": self.dismissed_count,
            "hour_histogram": list(self.hour_histogram),
            "day_histogram": list(self.day_histogram),
            "place_histogram": dict(self.place_histogram),
            "device_histogram": dict(self.device_histogram),
            "ignored_streak": self.ignored_streak,
            "is_pinned": self.is_pinned,
            "pin_until": self.pin_until,
            "quiet_until": self.quiet_until,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ItemSignals":
        missing = [k for k in _REQUIRED_SIGNALS if k not in data]
        if missing:
            raise ItemContractError(f"Item signals missing required fields: {', '.join(missing)}")
        return cls(
            created_at=data["created_at"],
            last_seen_at=data["last_seen_at"],
            seen_count=data["seen_count"],
            opened_count=data["opened_count"],
            dismissed_count=data["dismissed_count"],
            hour_histogram=list(data["hour_histogram"]),
            day_histogram=list(data["day_histogram"]),
            place_histogram=dict(data["place_histogram"]),
            device_histogram=dict(data["device_histogram"]),
            ignored_streak=data["ignored_streak"],
            is_pinned=bool(data["is_pinned"]),
            pin_until=data["pin_until"],
            quiet_until=data.get("quiet_until"),
        )


@dataclass
class ItemComputed:
    """Derived per ranking pass; never the source of truth."""
    score: float = 0.5
    distance: float = 0.5
    reasons: tuple[Reason, ...] = ()
    updated_at: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "distance": self.distance,
            "reasons": [r.to_dict() for r in self.reasons],
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ItemComputed":
        return cls(
            score=data.get("score", 0.5),
            distance=data.get("distance", 0.5),
            reasons=tuple(Reason.from_dict(r) for r in data.get("reasons", [])),
            updated_at=data.get("updated_at"),
        )


@dataclass
class Item:
    """A thing the user wants to keep in orbit."""
    id: str
    title: str
    signals: ItemSignals
    detail: str = ""
    url: str = ""
    computed: ItemComputed = field(default_factory=ItemComputed)

    def with_signals(self, **changes) -> "Item":
        return replace(self, signals=replace(self.signals, **changes))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "detail": self.detail,
            "url": self.url,
            "signals": self.signals.to_dict(),
            "computed": self.computed.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Item":
        for key in ("id", "title", "signals"):
            if key not in data:
                raise ItemContractError(f"Item record missing required field '{key}'")
        return cls(
            id=data["id"],
            title=data["title"],
            detail=data.get("detail") or "",
            url=data.get("url") or "",
            signals=ItemSignals.from_dict(data["signals"]),
            computed=ItemComputed.from_dict(data.get("computed") or {}),
        )


_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def sanitize_title(title: str) -> str:
    """Trim, strip control characters and cap the length of a title."""
    return _CONTROL_CHARS.sub("", title.strip()[:MAX_TITLE_LENGTH])


def create_item(title: str, detail: str = "", url: str = "", now: float = None) -> Item:
    """Create a new item with zeroed signals and a provisional score of 0.5."""
    clean = sanitize_title(title or "")
    if not clean:
        raise ValueError("Item title is required")
    if now is None:
        now = time.time()
    return Item(
        id=uuid.uuid4().hex,
        title=clean,
        detail=detail or "",
        url=url or "",
        signals=ItemSignals(created_at=now),
    )
