"""Tests for the benchmark-comparison scorer."""

from dataclasses import replace

import pytest

from conftest import flat_balance
from trackgrade.core.models import ScoreBreakdown
from trackgrade.core.scorer import (
    NEUTRAL_SUBSCORE,
    compare_metric,
    score,
    score_commercial_readiness,
    score_dynamics,
    score_frequency_balance,
    score_genre_alignment,
    score_loudness,
    score_stereo_imaging,
    weighted_overall,
)

POP_LOUDNESS = (-6.0, -4.0)
POP_DYNAMICS = (5.0, 9.0)
POP_STEREO = (0.7, 0.95)


class TestScenario:
    def test_clean_pop_mix(self, catalog, pop_features):
        result = score(pop_features, catalog.get("Pop"))
        assert result.breakdown.loudness == pytest.approx(1.0)
        assert result.breakdown.dynamics == pytest.approx(1.0)
        assert result.breakdown.stereo_imaging == pytest.approx(1.0)
        assert 85 <= result.overall <= 100

    def test_quiet_mix_loses_loudness(self, catalog, quiet_features):
        result = score(quiet_features, catalog.get("Pop"))
        assert result.breakdown.loudness == 0.0
        assert result.overall < score(replace(quiet_features, loudness_db=-5.0), catalog.get("Pop")).overall

    def test_idempotent(self, catalog, pop_features):
        benchmark = catalog.get("Pop")
        assert score(pop_features, benchmark) == score(pop_features, benchmark)

    def test_bounds_for_extreme_vectors(self, catalog, pop_features):
        extremes = [
            replace(pop_features, loudness_db=-60.0, dynamic_range_db=40.0,
                    stereo_width=0.0, tempo_bpm=300.0, energy=0.0, danceability=0.0,
                    duration_seconds=10.0, frequency_balance=flat_balance(0.0)),
            replace(pop_features, loudness_db=5.0, dynamic_range_db=0.0,
                    stereo_width=1.0, tempo_bpm=1.0, energy=1.0, danceability=1.0,
                    frequency_balance=flat_balance(1.0)),
        ]
        for genre in catalog.genres():
            for features in extremes:
                result = score(features, catalog.get(genre))
                assert 0 <= result.overall <= 100
                for value in result.breakdown.to_dict().values():
                    assert 0.0 <= value <= 1.0


class TestLoudness:
    @pytest.mark.parametrize("value", [-6.0, -5.0, -4.0])
    def test_inside_range_is_full_credit(self, value):
        assert score_loudness(value, POP_LOUDNESS) == 1.0

    def test_falls_off_outside(self):
        assert score_loudness(-6.5, POP_LOUDNESS) == pytest.approx(0.25)
        assert score_loudness(-3.5, POP_LOUDNESS) == pytest.approx(0.25)
        assert score_loudness(-7.0, POP_LOUDNESS) == 0.0

    def test_monotonic_away_from_midpoint(self):
        below = [score_loudness(v, POP_LOUDNESS) for v in (-6.0, -6.2, -6.5, -6.8, -8.0, -20.0)]
        above = [score_loudness(v, POP_LOUDNESS) for v in (-4.0, -3.8, -3.5, -3.2, -2.0, 0.0)]
        assert below == sorted(below, reverse=True)
        assert above == sorted(above, reverse=True)

    def test_zero_width_range(self):
        assert score_loudness(-5.0, (-5.0, -5.0)) == 1.0
        assert score_loudness(-6.0, (-5.0, -5.0)) == 0.0


class TestDynamics:
    def test_missing_is_neutral(self):
        assert score_dynamics(None, POP_DYNAMICS) == NEUTRAL_SUBSCORE

    @pytest.mark.parametrize("value", [5.0, 7.0, 9.0])
    def test_inside_range(self, value):
        assert score_dynamics(value, POP_DYNAMICS) == 1.0

    def test_below_range_scales_by_min(self):
        assert score_dynamics(3.0, POP_DYNAMICS) == pytest.approx(0.6)
        assert score_dynamics(0.0, POP_DYNAMICS) == 0.0

    def test_above_range_scales_by_max(self):
        assert score_dynamics(12.0, POP_DYNAMICS) == pytest.approx(1 - 3 / 9)
        assert score_dynamics(18.0, POP_DYNAMICS) == 0.0

    def test_asymmetric_penalty(self):
        # Two dB short of the range costs more than two dB past it
        assert score_dynamics(3.0, POP_DYNAMICS) < score_dynamics(11.0, POP_DYNAMICS)


class TestFrequencyBalance:
    def test_missing_is_neutral(self, minimal_features):
        assert score_frequency_balance(minimal_features) == NEUTRAL_SUBSCORE

    def test_flat_healthy_spectrum(self, pop_features):
        features = replace(pop_features, frequency_balance=flat_balance(0.5))
        assert score_frequency_balance(features) == pytest.approx(1.0)

    def test_flat_thin_spectrum(self, pop_features):
        features = replace(pop_features, frequency_balance=flat_balance(0.2))
        assert score_frequency_balance(features) == pytest.approx(0.7)

    def test_uneven_spectrum_scores_lower(self, pop_features):
        uneven = replace(
            pop_features.frequency_balance, sub_bass=1.0, low_mid=0.0, brilliance=0.0
        )
        even = score_frequency_balance(replace(pop_features, frequency_balance=flat_balance(0.6)))
        assert score_frequency_balance(replace(pop_features, frequency_balance=uneven)) < even


class TestStereoImaging:
    def test_missing_is_neutral(self):
        assert score_stereo_imaging(None, POP_STEREO) == NEUTRAL_SUBSCORE

    @pytest.mark.parametrize("value", [0.7, 0.8, 0.95])
    def test_inside_range(self, value):
        assert score_stereo_imaging(value, POP_STEREO) == 1.0

    def test_narrow(self):
        assert score_stereo_imaging(0.35, POP_STEREO) == pytest.approx(0.5)

    def test_over_wide(self):
        assert score_stereo_imaging(0.975, POP_STEREO) == pytest.approx(0.5)

    def test_max_at_full_width(self):
        assert score_stereo_imaging(1.0, (0.8, 1.0)) == 1.0
        assert score_stereo_imaging(1.2, (0.8, 1.0)) == 0.0


class TestGenreAlignment:
    def test_perfect_fit(self, catalog, pop_features):
        assert score_genre_alignment(pop_features, catalog.get("Pop")) == pytest.approx(1.0)

    def test_tempo_tolerance(self, catalog, pop_features):
        features = replace(pop_features, tempo_bpm=80.0)
        assert score_genre_alignment(features, catalog.get("Pop")) == pytest.approx((2 / 3 + 2) / 3)

    def test_energy_and_danceability_half_credit(self, catalog, pop_features):
        features = replace(pop_features, energy=0.2, danceability=0.2)
        assert score_genre_alignment(features, catalog.get("Pop")) == pytest.approx(2 / 3)


class TestCommercialReadiness:
    def test_capped_at_one(self, pop_features):
        assert score_commercial_readiness(pop_features) == 1.0

    def test_nothing_fits(self, pop_features):
        features = replace(
            pop_features, duration_seconds=100.0, energy=0.9, danceability=0.3, loudness_db=-12.0
        )
        assert score_commercial_readiness(features) == 0.0

    def test_partial_duration_credit(self, pop_features):
        features = replace(
            pop_features, duration_seconds=280.0, energy=0.9, danceability=0.3, loudness_db=-12.0
        )
        assert score_commercial_readiness(features) == pytest.approx(0.15)


class TestWeightedOverall:
    def test_extremes(self):
        assert weighted_overall(ScoreBreakdown(*([1.0] * 6))) == 100
        assert weighted_overall(ScoreBreakdown(*([0.0] * 6))) == 0

    def test_half(self):
        assert weighted_overall(ScoreBreakdown(*([0.5] * 6))) == 50

    def test_weights(self):
        # Frequency balance carries a quarter of the total
        breakdown = ScoreBreakdown(0.0, 0.0, 1.0, 0.0, 0.0, 0.0)
        assert weighted_overall(breakdown) == 25


class TestCompareMetric:
    def test_excellent_at_midpoint(self):
        result = compare_metric(-5.0, POP_LOUDNESS, "Loudness")
        assert result.status == "excellent"
        assert result.deviation == 0.0

    def test_good_inside_range(self):
        assert compare_metric(-4.2, POP_LOUDNESS, "Loudness").status == "good"

    def test_fair_just_outside(self):
        assert compare_metric(-3.8, POP_LOUDNESS, "Loudness").status == "fair"

    def test_needs_work(self):
        result = compare_metric(-2.0, POP_LOUDNESS, "Loudness")
        assert result.status == "needs_work"
        assert result.deviation == pytest.approx(3.0)

    def test_to_dict(self):
        data = compare_metric(-5.0, POP_LOUDNESS, "Loudness").to_dict()
        assert data["benchmark_range"] == [-6.0, -4.0]
