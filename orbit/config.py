"""Configuration for the Orbit ranking engine.

Holds the scoring weights, item defaults and tuning constants, plus the
settings file that the application layer reads on startup.

Weights are validated when configuration is built or loaded, never on the
scoring hot path.
"""

import json
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional


class ConfigError(ValueError):
    """Raised when configuration values break an engine invariant."""
    pass


# --- Scoring constants ---

NOVELTY_FADE_HOURS = 72.0      # novelty reaches 0 here
UNSEEN_DECAY_DAYS = 30.0       # never-touched items age out over this window
MAX_UNSEEN_DECAY = 0.8
STREAK_DECAY_STEP = 0.1        # per ignored ranking cycle
MAX_STREAK_DECAY = 0.5
QUIET_MULTIPLIER = 0.1
UNKNOWN_PLACE_AFFINITY = 0.8
NEUTRAL_PLACE_AFFINITY = 0.5
FADING_THRESHOLD = 0.3         # decay above this counts as "fading"
MAX_TITLE_LENGTH = 200

UNKNOWN_PLACE = "unknown"
DEFAULT_DEVICE = "desktop"


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class ScoringWeights:
    """Weights for each relevance signal. Must sum to 1.0."""
    time: float = 0.20
    place: float = 0.15
    device: float = 0.10
    recency: float = 0.25
    frequency: float = 0.15
    pinned: float = 0.10
    novelty: float = 0.05

    def total(self) -> float:
        return sum(asdict(self).values())

    def validate(self) -> "ScoringWeights":
        for name, value in asdict(self).items():
            if not _is_number(value):
                raise ConfigError(f"Weight '{name}' must be a number, got {value!r}")
            if value < 0:
                raise ConfigError(f"Weight '{name}' is negative: {value}")
        total = self.total()
        if abs(total - 1.0) > 0.001:
            raise ConfigError(f"Scoring weights sum to {total:.3f}, expected 1.0")
        return self


@dataclass
class ItemDefaults:
    max_visible: int = 5          # "N things" cap
    decay_days: float = 7.0       # recency e-folding time
    quiet_hours_default: float = 4.0
    novelty_hours: float = 24.0


DEFAULT_WEIGHTS = ScoringWeights().validate()
DEFAULTS = ItemDefaults()


# --- Settings file ---

def get_orbit_home() -> Path:
    """Return the data directory (``$ORBIT_HOME`` or ``~/.orbit``)."""
    env = os.environ.get("ORBIT_HOME")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".orbit"


def get_settings_path(home: Optional[Path] = None) -> Path:
    return (home or get_orbit_home()) / "settings.json"


@dataclass
class OrbitConfig:
    """User settings persisted between runs."""
    max_visible: int = DEFAULTS.max_visible
    decay_days: float = DEFAULTS.decay_days
    quiet_hours_default: float = DEFAULTS.quiet_hours_default
    place: str = UNKNOWN_PLACE
    device: Optional[str] = None   # None means detect at runtime
    db_path: Optional[str] = None
    last_cycle_at: Optional[float] = None
    weights: ScoringWeights = field(default_factory=ScoringWeights)

    def validate(self) -> "OrbitConfig":
        if isinstance(self.max_visible, bool) or not isinstance(self.max_visible, int) or self.max_visible <= 0:
            raise ConfigError(f"max_visible must be a positive integer, got {self.max_visible!r}")
        for name in ("decay_days", "quiet_hours_default"):
            if not _is_number(getattr(self, name)):
                raise ConfigError(f"{name} must be a number, got {getattr(self, name)!r}")
        if not self.decay_days > 0:
            raise ConfigError(f"decay_days must be positive, got {self.decay_days!r}")
        if not self.quiet_hours_default > 0:
            raise ConfigError(f"quiet_hours_default must be positive, got {self.quiet_hours_default!r}")
        self.weights.validate()
        return self

    def resolve_db_path(self, home: Optional[Path] = None) -> Path:
        if self.db_path:
            return Path(self.db_path).expanduser()
        return (home or get_orbit_home()) / "orbit.db"

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "OrbitConfig":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        weights = known.pop("weights", None)
        try:
            config = cls(**known)
            if weights:
                if not isinstance(weights, dict):
                    raise ConfigError(f"weights must be a mapping, got {weights!r}")
                config.weights = ScoringWeights(**weights)
        except TypeError as e:
            raise ConfigError(f"Invalid settings: {e}") from e
        for name in ("place", "device", "db_path"):
            value = getattr(config, name)
            if value is not None and not isinstance(value, str):
                raise ConfigError(f"{name} must be text, got {value!r}")
        if config.last_cycle_at is not None and not _is_number(config.last_cycle_at):
            raise ConfigError(f"last_cycle_at must be a timestamp, got {config.last_cycle_at!r}")
        return config.validate()


def load_config(path: Optional[Path] = None) -> OrbitConfig:
    """Load settings from disk, falling back to defaults if the file is missing or unreadable.

    Values that parse but break an invariant (e.g. weights not summing to 1.0)
    raise ConfigError so a bad configuration surfaces at startup.
    """
    path = path or get_settings_path()
    if not path.exists():
        return OrbitConfig()
    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError):
        return OrbitConfig()
    if not isinstance(data, dict):
        return OrbitConfig()
    return OrbitConfig.from_dict(data)


def save_config(config: OrbitConfig, path: Optional[Path] = None) -> None:
    path = path or get_settings_path()
    config.validate()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict(), indent=2) + "\n")


def update_config(path: Optional[Path] = None, **kwargs) -> OrbitConfig:
    """Update specific fields in the settings file and return the new config."""
    path = path or get_settings_path()
    data = load_config(path).to_dict()
    data.update(kwargs)
    config = OrbitConfig.from_dict(data)
    save_config(config, path)
    return config
