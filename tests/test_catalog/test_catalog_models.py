"""Tests for catalog report models."""

import json

import pytest

from trackgrade.catalog.aggregator import CatalogAggregator
from trackgrade.catalog.models import (
    GenreConsistency,
    Insight,
    QualityProgression,
    SonicIdentity,
    TrackHighlight,
    Trend,
)


class TestValidation:
    def test_progression_trend(self):
        with pytest.raises(ValueError):
            QualityProgression(
                trend="stable",
                average_score=70,
                score_range=(60, 80),
                best_track="A",
                weakest_track="B",
            )

    def test_trend_direction(self):
        with pytest.raises(ValueError):
            Trend(metric="Loudness", direction="up", change_percentage=5.0, description="")

    def test_trend_magnitude(self):
        with pytest.raises(ValueError):
            Trend(metric="Loudness", direction="declining", change_percentage=-5.0, description="")

    def test_insight_type(self):
        with pytest.raises(ValueError):
            Insight(type="praise", title="t", description="d")


class TestSerialization:
    def test_progression(self):
        progression = QualityProgression(
            trend="improving",
            average_score=70,
            score_range=(60, 80),
            best_track="A",
            weakest_track="B",
            improvement_rate=4.0,
        )
        data = progression.to_dict()
        assert data["score_range"] == [60, 80]
        assert data["improvement_rate"] == 4.0

    def test_genre_distribution_is_mapping(self):
        genre = GenreConsistency(
            primary_genre="Pop",
            consistency_score=75,
            genre_distribution=(("Pop", 75), ("R&B", 25)),
            recommendation="r",
        )
        assert genre.to_dict()["genre_distribution"] == {"Pop": 75, "R&B": 25}

    def test_sonic_signature_nested(self):
        sonic = SonicIdentity(
            tempo_range=(100, 120),
            energy_range=(0.5, 0.7),
            common_traits=("Mid-tempo grooves",),
            consistency_score=90,
            outlier_tracks=(),
            recommendation="r",
        )
        data = sonic.to_dict()
        assert data["signature_sound"]["tempo_range"] == [100, 120]
        assert data["signature_sound"]["common_traits"] == ["Mid-tempo grooves"]
        assert data["outlier_tracks"] == []

    def test_highlight(self):
        assert TrackHighlight("A", 90, ("Punchy",)).to_dict() == {
            "name": "A", "score": 90, "notes": ["Punchy"],
        }

    def test_report_round_trips_through_json(self, make_analysis):
        analyses = [make_analysis(f"T{n}", s) for n, s in enumerate([60, 70, 80], start=1)]
        report = CatalogAggregator().aggregate(analyses)
        data = json.loads(report.to_json())
        assert data["total_tracks"] == 3
        assert data["best_performing_track"]["name"] == "T3"
        assert [p["track_number"] for p in data["timeline"]] == [1, 2, 3]
        assert data["quality_progression"]["trend"] == "improving"
