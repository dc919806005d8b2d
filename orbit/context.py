"""Context provider — builds the time/place/device snapshot for a ranking pass.

The engine never infers context on its own; this module is the one place that
looks at the clock, the host and the user's settings.
"""

import os
import platform as stdlib_platform
import time
import uuid
from typing import Optional

from orbit.config import DEFAULT_DEVICE, OrbitConfig
from orbit.models import Context, normalize_device, normalize_place

DEVICE_CLASSES = ("desktop", "mobile", "tablet")

# One session per process
_SESSION_ID = uuid.uuid4().hex


def session_id() -> str:
    return _SESSION_ID


def detect_device() -> str:
    """Return 'desktop', 'mobile' or 'tablet' for the current host.

    ``ORBIT_DEVICE`` overrides detection. Android hosts (Termux) count as
    mobile; everything else is a desktop.
    """
    override = os.environ.get("ORBIT_DEVICE", "").strip().lower()
    if override in DEVICE_CLASSES:
        return override
    if "ANDROID_ROOT" in os.environ or "android" in stdlib_platform.release().lower():
        return "mobile"
    return DEFAULT_DEVICE


def get_current_context(config: Optional[OrbitConfig] = None, now: float = None) -> Context:
    """Snapshot the current wall-clock time, device class and place."""
    if config is None:
        config = OrbitConfig()
    if now is None:
        now = time.time()
    device = normalize_device(config.device) if config.device else detect_device()
    return Context.at(
        now,
        device=device,
        place=config.place,
        session_id=session_id(),
    )
