"""Shared fixtures for trackgrade tests."""

from dataclasses import replace
from typing import Optional

import pytest

from trackgrade.core.analyzer import TrackAnalyzer
from trackgrade.core.benchmarks import BenchmarkCatalog
from trackgrade.core.cache import CacheManager
from trackgrade.core.models import (
    FeatureVector,
    FrequencyBalance,
    Issue,
    ProductionStage,
    Score,
    ScoreBreakdown,
    TrackAnalysis,
)


# ---------------------------------------------------------------------------
# Feature vectors
# ---------------------------------------------------------------------------

POP_FEATURES = {
    "tempo_bpm": 115,
    "danceability": 0.7,
    "energy": 0.65,
    "valence": 0.6,
    "acousticness": 0.1,
    "instrumentalness": 0.0,
    "speechiness": 0.05,
    "loudness_db": -6,
    "duration_seconds": 200,
    "dynamic_range_db": 8,
    "stereo_width": 0.8,
    "frequency_balance": {
        "sub_bass": 0.6,
        "bass": 0.7,
        "low_mid": 0.6,
        "mid": 0.7,
        "high_mid": 0.6,
        "presence": 0.6,
        "brilliance": 0.55,
    },
}


@pytest.fixture
def pop_features() -> FeatureVector:
    """A clean, commercially-shaped Pop mix."""
    return FeatureVector.from_dict(POP_FEATURES)


@pytest.fixture
def quiet_features(pop_features) -> FeatureVector:
    """The Pop mix, 10 dB too quiet."""
    return replace(pop_features, loudness_db=-16.0)


@pytest.fixture
def minimal_features() -> FeatureVector:
    """Only the required measurements."""
    data = {
        key: value for key, value in POP_FEATURES.items()
        if key not in ("dynamic_range_db", "stereo_width", "frequency_balance")
    }
    return FeatureVector.from_dict(data)


def flat_balance(level: float) -> FrequencyBalance:
    return FrequencyBalance(*([level] * 7))


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


@pytest.fixture
def catalog() -> BenchmarkCatalog:
    """Built-in benchmarks, Pop default."""
    return BenchmarkCatalog()


@pytest.fixture
def cache() -> CacheManager:
    return CacheManager(max_size=10, ttl=60)


@pytest.fixture
def analyzer(catalog, cache) -> TrackAnalyzer:
    return TrackAnalyzer(catalog, cache=cache)


# ---------------------------------------------------------------------------
# Hand-built analyses for catalog tests
# ---------------------------------------------------------------------------


@pytest.fixture
def make_analysis(catalog, pop_features):
    """
    Factory for TrackAnalysis values with a chosen overall score.

    Sub-scores, features and genre can be set per call; everything else
    is filled with plausible defaults.
    """

    def _make(
        name: str,
        overall: int,
        genre: str = "Pop",
        tempo_bpm: Optional[float] = None,
        energy: Optional[float] = None,
        loudness_db: Optional[float] = None,
        dynamics: float = 0.8,
        frequency_balance: float = 0.8,
        issues: tuple = (),
        strengths: tuple = (),
    ) -> TrackAnalysis:
        features = replace(
            pop_features,
            tempo_bpm=tempo_bpm if tempo_bpm is not None else pop_features.tempo_bpm,
            energy=energy if energy is not None else pop_features.energy,
            loudness_db=loudness_db if loudness_db is not None else pop_features.loudness_db,
        )
        benchmark = catalog.get(genre)
        breakdown = ScoreBreakdown(
            loudness=0.8,
            dynamics=dynamics,
            frequency_balance=frequency_balance,
            stereo_imaging=0.8,
            genre_alignment=0.8,
            commercial_readiness=0.8,
        )
        return TrackAnalysis(
            track_name=name,
            features=features,
            benchmark=benchmark,
            score=Score(overall=overall, breakdown=breakdown),
            issues=tuple(issues),
            strengths=tuple(strengths),
            overall_assessment="",
            next_steps=(),
            stage=ProductionStage.MASTERED,
            reference_tracks=benchmark.reference_tracks,
            requested_genre=genre,
        )

    return _make


def make_issue(
    category: str = "loudness",
    severity: str = "warning",
    title: str = "Test Issue",
) -> Issue:
    return Issue(
        category=category,
        severity=severity,
        title=title,
        description="Something to fix.",
        current_value="x",
        recommendations=("Fix it", "Check it"),
    )
