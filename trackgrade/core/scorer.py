"""
Benchmark-comparison scorer.

Pure functions mapping a feature vector and a benchmark to six sub-scores
in [0, 1] and a weighted overall score out of 100. The weights are shared
by every track so scores stay comparable across a catalog.
"""

import math
from typing import Dict, Optional

import numpy as np

from trackgrade.core.models import (
    Benchmark,
    FeatureVector,
    MetricComparison,
    Range,
    Score,
    ScoreBreakdown,
)

# Used when an optional measurement is missing
NEUTRAL_SUBSCORE: float = 0.7

SCORE_WEIGHTS: Dict[str, float] = {
    "loudness": 0.20,
    "dynamics": 0.15,
    "frequency_balance": 0.25,
    "stereo_imaging": 0.15,
    "genre_alignment": 0.15,
    "commercial_readiness": 0.10,
}

TEMPO_TOLERANCE_BPM: float = 30.0
OUT_OF_RANGE_CREDIT: float = 0.5


def score(features: FeatureVector, benchmark: Benchmark) -> Score:
    """
    Score a track against a genre benchmark.

    Args:
        features: Validated feature vector
        benchmark: Benchmark to compare against

    Returns:
        Score with overall in [0, 100] and every sub-score in [0, 1]
    """
    breakdown = ScoreBreakdown(
        loudness=score_loudness(features.loudness_db, benchmark.loudness_db),
        dynamics=score_dynamics(features.dynamic_range_db, benchmark.dynamic_range_db),
        frequency_balance=score_frequency_balance(features),
        stereo_imaging=score_stereo_imaging(features.stereo_width, benchmark.stereo_width),
        genre_alignment=score_genre_alignment(features, benchmark),
        commercial_readiness=score_commercial_readiness(features),
    )
    return Score(overall=weighted_overall(breakdown), breakdown=breakdown)


def weighted_overall(breakdown: ScoreBreakdown) -> int:
    """Weighted sum of the sub-scores scaled to 0-100, rounded half up."""
    total = sum(
        getattr(breakdown, name) * weight for name, weight in SCORE_WEIGHTS.items()
    )
    return min(100, max(0, math.floor(total * 100 + 0.5)))


def score_loudness(loudness_db: float, target: Range) -> float:
    """
    Loudness band centred on the benchmark midpoint.

    Anything inside the target range scores 1.0; outside it the score
    falls off with distance from the midpoint, reaching zero two
    half-widths away.
    """
    low, high = target
    if low <= loudness_db <= high:
        return 1.0

    mid = (low + high) / 2
    tolerance = (high - low) / 2
    if tolerance <= 0:
        return 0.0
    return _clamp(1 - abs(loudness_db - mid) / (tolerance * 2))


def score_dynamics(dynamic_range_db: Optional[float], target: Range) -> float:
    """
    Dynamic range score.

    Below the range the score is the fraction of the minimum reached;
    above it the excess is measured against the maximum. The two sides
    use different scales on purpose.
    """
    if dynamic_range_db is None:
        return NEUTRAL_SUBSCORE

    low, high = target
    if low <= dynamic_range_db <= high:
        return 1.0
    if dynamic_range_db < low:
        return _clamp(dynamic_range_db / low)
    if high <= 0:
        return 0.0
    return _clamp(1 - (dynamic_range_db - high) / high)


def score_frequency_balance(features: FeatureVector) -> float:
    """Evenness across the seven bands plus bass and presence adequacy."""
    balance = features.frequency_balance
    if balance is None:
        return NEUTRAL_SUBSCORE

    # Population variance, lower means a flatter spectrum
    variance = float(np.var(np.asarray(balance.values(), dtype=float)))
    evenness = max(0.0, 1 - variance * 2)
    bass_adequacy = min(1.0, balance.bass * 2)
    presence_adequacy = min(1.0, balance.presence * 2)

    return _clamp(evenness * 0.5 + bass_adequacy * 0.25 + presence_adequacy * 0.25)


def score_stereo_imaging(stereo_width: Optional[float], target: Range) -> float:
    """Full credit inside the range, linear fall-off to 0 and to full width."""
    if stereo_width is None:
        return NEUTRAL_SUBSCORE

    low, high = target
    if low <= stereo_width <= high:
        return 1.0
    if stereo_width < low:
        return _clamp(stereo_width / low)
    if high >= 1.0:
        return 0.0
    return _clamp(1 - (stereo_width - high) / (1 - high))


def score_genre_alignment(features: FeatureVector, benchmark: Benchmark) -> float:
    """Mean of tempo, energy and danceability fit."""
    low, high = benchmark.tempo_bpm
    if low <= features.tempo_bpm <= high:
        tempo_fit = 1.0
    else:
        distance = min(abs(features.tempo_bpm - low), abs(features.tempo_bpm - high))
        tempo_fit = max(0.0, 1 - distance / TEMPO_TOLERANCE_BPM)

    energy_fit = 1.0 if _within(features.energy, benchmark.energy) else OUT_OF_RANGE_CREDIT
    dance_fit = (
        1.0 if _within(features.danceability, benchmark.danceability)
        else OUT_OF_RANGE_CREDIT
    )

    return _clamp((tempo_fit + energy_fit + dance_fit) / 3)


def score_commercial_readiness(features: FeatureVector) -> float:
    """
    Genre-independent release readiness, an additive budget capped at 1.0.

    Up to 0.3 for a 3-4 minute runtime (0.15 for 2:30-5:00), 0.3 for
    moderate energy, 0.3 for danceability of at least 0.5 and 0.2 for a
    loudness between -10 and -3 dB.
    """
    total = 0.0

    duration = features.duration_seconds
    if 180 <= duration <= 240:
        total += 0.3
    elif 150 <= duration <= 300:
        total += 0.15

    if 0.4 <= features.energy <= 0.8:
        total += 0.3

    if features.danceability >= 0.5:
        total += 0.3

    if -10 <= features.loudness_db <= -3:
        total += 0.2

    return _clamp(total)


def compare_metric(value: float, target: Range, metric: str) -> MetricComparison:
    """
    Grade one measurement against a benchmark range.

    Args:
        value: Measured value
        target: Benchmark (min, max)
        metric: Display name

    Returns:
        MetricComparison with deviation in half-widths from the midpoint
    """
    low, high = target
    mid = (low + high) / 2
    tolerance = (high - low) / 2
    distance = abs(value - mid)

    if low <= value <= high:
        status = "excellent" if distance < tolerance * 0.3 else "good"
    elif distance < tolerance * 1.5:
        status = "fair"
    else:
        status = "needs_work"

    deviation = distance / tolerance if tolerance > 0 else (0.0 if distance == 0 else math.inf)
    return MetricComparison(
        metric=metric,
        value=value,
        benchmark_range=target,
        deviation=deviation,
        status=status,
    )


def _within(value: float, target: Range) -> bool:
    return target[0] <= value <= target[1]


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, float(value)))
