"""Relevance scoring for Orbit items.

Formula:
    raw   = w_time*time + w_place*place + w_device*device + w_recency*recency
            + w_frequency*frequency + w_pinned*[pin active] + w_novelty*novelty
    score = clamp(raw * (1 - decay) * [0.1 if quieted else 1], 0, 1)

Where:
    - time: hour-of-day share (with ±1h smoothing) blended 0.7/0.3 with day-of-week share
    - place / device: share of past interactions in the current place / on the current device
    - recency: exp(-days since last interaction / decay_days)
    - frequency: log-scaled weighted interaction count, opens count double
    - novelty: full for the first day, fading to zero by 72 hours
    - decay: ignored streak for items with history, age for never-seen items

Context > priority: each signal contributes weight, none is a hard rule.
"""

import math
from dataclasses import dataclass, field
from typing import Optional

from orbit import histogram
from orbit.config import (
    DEFAULT_WEIGHTS,
    DEFAULTS,
    FADING_THRESHOLD,
    MAX_STREAK_DECAY,
    MAX_UNSEEN_DECAY,
    NEUTRAL_PLACE_AFFINITY,
    NOVELTY_FADE_HOURS,
    QUIET_MULTIPLIER,
    STREAK_DECAY_STEP,
    UNKNOWN_PLACE,
    UNKNOWN_PLACE_AFFINITY,
    UNSEEN_DECAY_DAYS,
    ScoringWeights,
)
from orbit.models import Context, Item, Reason, ReasonKind

SECONDS_PER_DAY = 86400.0
SECONDS_PER_HOUR = 3600.0

# Minimum samples before a pattern is worth mentioning as a reason
MIN_TIME_SAMPLES = 10
MIN_PLACE_SAMPLES = 5
MIN_DEVICE_SAMPLES = 5


@dataclass
class Relevance:
    score: float
    reasons: list[Reason] = field(default_factory=list)
    components: dict[str, float] = field(default_factory=dict)


def time_affinity(item: Item, context: Context) -> float:
    """How strongly the item's history clusters at this hour and weekday."""
    s = item.signals
    prev_h, next_h = histogram.neighbours(context.hour)
    hour_prob = histogram.share(s.hour_histogram, context.hour)
    neighbour_prob = histogram.share(s.hour_histogram, prev_h) + histogram.share(s.hour_histogram, next_h)
    hour = min(1.0, hour_prob + neighbour_prob * 0.5)
    day = histogram.share(s.day_histogram, context.day)
    return hour * 0.7 + day * 0.3


def place_affinity(item: Item, context: Context) -> float:
    """Share of interactions at the current place.

    An unknown place is not held against the item. Items with history only
    elsewhere get a neutral 0.5; items with no place history at all get 0.
    """
    if context.place == UNKNOWN_PLACE:
        return UNKNOWN_PLACE_AFFINITY
    places = item.signals.place_histogram
    if histogram.total(places) <= 0:
        return 0.0
    if histogram.bucket(places, context.place) <= 0:
        return NEUTRAL_PLACE_AFFINITY
    return histogram.share(places, context.place)


def device_affinity(item: Item, context: Context) -> float:
    return histogram.share(item.signals.device_histogram, context.device)


def recency_boost(item: Item, context: Context, decay_days: float = DEFAULTS.decay_days) -> float:
    """Exponential decay from the last interaction. 0.0 if never seen."""
    last = item.signals.last_seen_at
    if last is None:
        return 0.0
    age_days = max(0.0, context.now - last) / SECONDS_PER_DAY
    return math.exp(-age_days / decay_days)


def frequency_boost(item: Item) -> float:
    """Log-scaled interactions, saturating around 100 weighted interactions."""
    s = item.signals
    interactions = s.seen_count + s.opened_count * 2
    return min(1.0, math.log10(interactions + 1) / 2)


def novelty_boost(item: Item, context: Context, novelty_hours: float = DEFAULTS.novelty_hours) -> float:
    age_hours = max(0.0, context.now - item.signals.created_at) / SECONDS_PER_HOUR
    if age_hours < novelty_hours:
        return 1.0
    if age_hours < NOVELTY_FADE_HOURS:
        return 1.0 - (age_hours - novelty_hours) / (NOVELTY_FADE_HOURS - novelty_hours)
    return 0.0


def pin_active(item: Item, context: Context) -> bool:
    s = item.signals
    return s.is_pinned and (s.pin_until is None or s.pin_until > context.now)


def quiet_active(item: Item, context: Context) -> bool:
    quiet_until = item.signals.quiet_until
    return quiet_until is not None and context.now < quiet_until


def decay_factor(item: Item, context: Context) -> float:
    """Suppression in [0, 0.8].

    Items with history fade with their ignored streak (capped at 0.5);
    never-seen items age out over 30 days (capped at 0.8).
    """
    s = item.signals
    if s.last_seen_at is None:
        age_days = max(0.0, context.now - s.created_at) / SECONDS_PER_DAY
        return min(MAX_UNSEEN_DECAY, age_days / UNSEEN_DECAY_DAYS)
    return min(MAX_STREAK_DECAY, s.ignored_streak * STREAK_DECAY_STEP)


def compute_relevance(
    item: Item,
    context: Context,
    weights: ScoringWeights = None,
    decay_days: Optional[float] = None,
) -> Relevance:
    """Score one item against one context.

    Args:
        item: The item to score (not modified)
        context: Current time/place/device snapshot
        weights: Signal weights; assumed already validated
        decay_days: Recency e-folding time in days

    Returns:
        Relevance with the clamped score, the reasons in evaluation order,
        and the raw sub-scores keyed by signal name
    """
    if weights is None:
        weights = DEFAULT_WEIGHTS
    if decay_days is None:
        decay_days = DEFAULTS.decay_days
    s = item.signals
    reasons = []
    score = 0.0

    time_score = time_affinity(item, context)
    score += time_score * weights.time
    if time_score > 0.5 and histogram.total(s.hour_histogram) > MIN_TIME_SAMPLES:
        reasons.append(Reason(ReasonKind.TIME))

    place_score = place_affinity(item, context)
    score += place_score * weights.place
    if place_score > 0.5 and histogram.total(s.place_histogram) > MIN_PLACE_SAMPLES:
        reasons.append(Reason(ReasonKind.PLACE, context.place))

    device_score = device_affinity(item, context)
    score += device_score * weights.device
    if device_score > 0.5 and histogram.total(s.device_histogram) > MIN_DEVICE_SAMPLES:
        reasons.append(Reason(ReasonKind.DEVICE, context.device))

    recency_score = recency_boost(item, context, decay_days)
    score += recency_score * weights.recency
    if recency_score > 0.7:
        reasons.append(Reason(ReasonKind.RECENCY))

    frequency_score = frequency_boost(item)
    score += frequency_score * weights.frequency
    if frequency_score > 0.5:
        reasons.append(Reason(ReasonKind.FREQUENCY))

    pinned = pin_active(item, context)
    if pinned:
        score += weights.pinned
        reasons.append(Reason(ReasonKind.PINNED))

    novelty_score = novelty_boost(item, context)
    score += novelty_score * weights.novelty
    if novelty_score > 0.5:
        reasons.append(Reason(ReasonKind.NOVELTY))

    decay = decay_factor(item, context)
    score *= 1 - decay
    if decay > FADING_THRESHOLD:
        reasons.append(Reason(ReasonKind.FADING))

    quieted = quiet_active(item, context)
    if quieted:
        score *= QUIET_MULTIPLIER
        reasons.append(Reason(ReasonKind.QUIETED))

    return Relevance(
        score=clamp(score),
        reasons=reasons,
        components={
            "time": time_score,
            "place": place_score,
            "device": device_score,
            "recency": recency_score,
            "frequency": frequency_score,
            "pinned": 1.0 if pinned else 0.0,
            "novelty": novelty_score,
            "decay": decay,
            "quiet": QUIET_MULTIPLIER if quieted else 1.0,
        },
    )


def clamp(score: float) -> float:
    return max(0.0, min(1.0, score))


def score_to_distance(score: float) -> float:
    """Higher score = closer = lower distance."""
    return 1.0 - score
