"""Wait time estimation for venue line reports.

Fuses many crowd-sourced observations of a venue's queue into a single
estimate. Each report is weighted by the reporter's reliability, decays
exponentially with age and is nudged up or down by community votes.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

MAX_AGE_HOURS = 2.0
TIME_DECAY_FACTOR = 0.8
VOTE_WEIGHT_FACTOR = 0.2

NO_LINE = "No Line"
SHORT_LINE = "Short Line"
MEDIUM_LINE = "Medium Line"
LONG_LINE = "Long Line"
VERY_LONG_LINE = "Very Long Line"


@dataclass(frozen=True)
class Report:
    reported_minutes: int
    timestamp: dt.datetime
    base_weight: float
    upvotes: int = 0
    downvotes: int = 0


@dataclass(frozen=True)
class EstimationResult:
    minutes: int
    category: str
    confidence: float  # 0 = no usable signal, 1 = fully backed

    def as_dict(self) -> Dict[str, Any]:
        return {
            "minutes": self.minutes,
            "category": self.category,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class LineCategory:
    min_minutes: int
    label: str


# Highest threshold first; the first row whose minimum is met wins.
LINE_CATEGORIES: Tuple[LineCategory, ...] = (
    LineCategory(31, VERY_LONG_LINE),
    LineCategory(16, LONG_LINE),
    LineCategory(5, MEDIUM_LINE),
    LineCategory(1, SHORT_LINE),
    LineCategory(0, NO_LINE),
)

NO_SIGNAL = EstimationResult(minutes=0, category=NO_LINE, confidence=0.0)


def categorize_minutes(minutes: int) -> str:
    """Map an estimated wait in minutes to its line category label."""
    for category in LINE_CATEGORIES:
        if minutes >= category.min_minutes:
            return category.label
    return NO_LINE


def report_weight(report: Report, now: Optional[dt.datetime] = None) -> float:
    """Effective weight of a single report at ``now`` (0.0 once expired)."""
    now = _as_utc(now or dt.datetime.now(dt.timezone.utc))
    return float(_effective_weights([report], now)[0])


def estimate_wait_time(
    reports: Sequence[Report], now: Optional[dt.datetime] = None
) -> EstimationResult:
    """Aggregate ``reports`` into one wait estimate as seen at ``now``.

    Reports older than ``MAX_AGE_HOURS`` are dropped, the rest are combined
    as a weighted average. Confidence is the summed effective weight divided
    by the number of reports supplied, so stale or worthless reports pull it
    down even though they do not move the estimate. Degenerate input yields
    ``NO_SIGNAL`` rather than an error.
    """
    if not reports:
        return NO_SIGNAL

    now = _as_utc(now or dt.datetime.now(dt.timezone.utc))
    weights = _effective_weights(reports, now)
    total_weight = float(weights.sum())
    if total_weight <= 0:
        return NO_SIGNAL

    minutes = np.array(
        [max(report.reported_minutes, 0) for report in reports], dtype=float
    )
    weighted_sum = float(np.dot(minutes, weights))
    estimated = _round_half_up(weighted_sum / total_weight)
    confidence = min(1.0, total_weight / len(reports))
    return EstimationResult(
        minutes=estimated,
        category=categorize_minutes(estimated),
        confidence=confidence,
    )


def _effective_weights(reports: Sequence[Report], now: dt.datetime) -> np.ndarray:
    ages = np.array([_age_hours(report, now) for report in reports], dtype=float)
    base = np.array([report.base_weight for report in reports], dtype=float)
    upvotes = np.array([max(report.upvotes, 0) for report in reports], dtype=float)
    downvotes = np.array([max(report.downvotes, 0) for report in reports], dtype=float)

    decay = np.power(TIME_DECAY_FACTOR, ages)

    total_votes = upvotes + downvotes
    # Unvoted reports keep a neutral ratio, i.e. a multiplier of exactly 1.
    vote_ratio = np.divide(
        upvotes,
        total_votes,
        out=np.full_like(upvotes, 0.5),
        where=total_votes > 0,
    )
    vote_multiplier = 1 + (vote_ratio - 0.5) * VOTE_WEIGHT_FACTOR

    weights = base * decay * vote_multiplier
    usable = (ages <= MAX_AGE_HOURS) & (weights > 0)
    return np.where(usable, weights, 0.0)


def _age_hours(report: Report, now: dt.datetime) -> float:
    age = (now - _as_utc(report.timestamp)).total_seconds() / 3600
    return max(age, 0.0)


def _as_utc(timestamp: dt.datetime) -> dt.datetime:
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=dt.timezone.utc)
    return timestamp


def _round_half_up(value: float) -> int:
    # Quantize the exact value; float `value + 0.5` rounds 0.49999999999999994 up to 1.
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))
