"""Tests for diagnostic issue generation and stage filtering."""

from dataclasses import replace

import pytest

from conftest import make_issue
from trackgrade.core.diagnostics import (
    EARLY_STAGE_NOTE,
    REVIEW_STAGE_NOTE,
    UNKNOWN_STAGE_NOTE,
    diagnose,
    filter_issues_for_stage,
    format_duration,
    stage_tips,
)
from trackgrade.core.models import ProductionStage, Score, ScoreBreakdown
from trackgrade.core.scorer import score


def titles(issues):
    return [issue.title for issue in issues]


class TestDiagnose:
    def test_clean_mix_has_no_issues(self, catalog, pop_features):
        assert diagnose(pop_features, catalog.get("Pop")) == []

    def test_too_quiet_is_critical(self, catalog, quiet_features):
        issues = diagnose(quiet_features, catalog.get("Pop"))
        critical = [issue for issue in issues if issue.severity == "critical"]
        assert len(critical) == 1
        assert critical[0].category == "loudness"
        assert critical[0].title == "Mix is Too Quiet"
        assert critical[0].current_value == "-16.0 LUFS"
        assert critical[0].target_value == "-6 to -4 LUFS"

    def test_quiet_margin(self, catalog, pop_features):
        # Three dB of grace below the range
        assert diagnose(replace(pop_features, loudness_db=-9.0), catalog.get("Pop")) == []

    def test_too_loud_is_warning(self, catalog, pop_features):
        issues = diagnose(replace(pop_features, loudness_db=-1.0), catalog.get("Pop"))
        assert titles(issues) == ["Mix May Be Over-Compressed"]
        assert issues[0].severity == "warning"

    def test_crushed_dynamics_critical(self, catalog, pop_features):
        issues = diagnose(replace(pop_features, dynamic_range_db=2.5), catalog.get("Pop"))
        assert titles(issues) == ["Limited Dynamic Range"]
        assert issues[0].severity == "critical"

    def test_limited_dynamics_warning(self, catalog, pop_features):
        features = replace(pop_features, dynamic_range_db=4.5, loudness_db=-7.5)
        issues = diagnose(features, catalog.get("Alternative"))
        assert titles(issues) == ["Limited Dynamic Range"]
        assert issues[0].severity == "warning"

    def test_missing_optional_features_skip_checks(self, catalog, minimal_features):
        assert diagnose(minimal_features, catalog.get("Pop")) == []

    @pytest.mark.parametrize("band,value,title,severity", [
        ("bass", 0.4, "Weak Low End", "warning"),
        ("bass", 0.95, "Excessive Low End", "warning"),
        ("brilliance", 0.3, "Lacking High-End Sparkle", "suggestion"),
    ])
    def test_frequency_bands(self, catalog, pop_features, band, value, title, severity):
        balance = replace(pop_features.frequency_balance, **{band: value})
        issues = diagnose(replace(pop_features, frequency_balance=balance), catalog.get("Pop"))
        assert titles(issues) == [title]
        assert issues[0].severity == severity
        assert issues[0].category == "frequency_balance"

    def test_narrow_stereo(self, catalog, pop_features):
        issues = diagnose(replace(pop_features, stereo_width=0.3), catalog.get("Pop"))
        assert titles(issues) == ["Narrow Stereo Image"]
        assert issues[0].severity == "warning"
        assert issues[0].current_value == "30%"

    def test_over_wide_stereo(self, catalog, pop_features):
        issues = diagnose(replace(pop_features, stereo_width=0.97), catalog.get("Pop"))
        assert titles(issues) == ["Possibly Over-Widened"]
        assert issues[0].severity == "suggestion"

    def test_tempo_outside_norm(self, catalog, pop_features):
        issues = diagnose(replace(pop_features, tempo_bpm=75.0), catalog.get("Pop"))
        assert titles(issues) == ["Tempo Outside Genre Norm"]
        assert issues[0].severity == "suggestion"
        assert "Pop" in issues[0].description

    def test_tempo_margin(self, catalog, pop_features):
        assert diagnose(replace(pop_features, tempo_bpm=85.0), catalog.get("Pop")) == []

    def test_long_song(self, catalog, pop_features):
        issues = diagnose(replace(pop_features, duration_seconds=245.0), catalog.get("Pop"))
        assert titles(issues) == ["Song is Quite Long"]
        assert issues[0].current_value == "4:05"
        assert issues[0].target_value == "2:45 - 3:30"

    def test_short_song(self, catalog, pop_features):
        issues = diagnose(replace(pop_features, duration_seconds=130.0), catalog.get("Pop"))
        assert titles(issues) == ["Song is Quite Short"]

    def test_emission_order(self, catalog, pop_features):
        balance = replace(pop_features.frequency_balance, bass=0.3, brilliance=0.3)
        features = replace(
            pop_features,
            loudness_db=-20.0,
            dynamic_range_db=1.0,
            frequency_balance=balance,
            stereo_width=0.2,
            tempo_bpm=60.0,
            duration_seconds=400.0,
        )
        issues = diagnose(features, catalog.get("Pop"))
        assert [issue.category for issue in issues] == [
            "loudness",
            "dynamics",
            "frequency_balance",
            "frequency_balance",
            "stereo_imaging",
            "tempo",
            "structure",
        ]

    def test_recommendations_present(self, catalog, quiet_features):
        for issue in diagnose(quiet_features, catalog.get("Pop")):
            assert 2 <= len(issue.recommendations) <= 4


class TestStageFilter:
    @pytest.mark.parametrize("stage", [ProductionStage.ROUGH_MIX, ProductionStage.MIXING])
    def test_early_stage_downgrades_loudness(self, stage):
        issue = make_issue(category="loudness", severity="warning")
        [filtered] = filter_issues_for_stage([issue], stage)
        assert filtered.severity == "suggestion"
        assert filtered.description.endswith(EARLY_STAGE_NOTE)

    @pytest.mark.parametrize("stage", list(ProductionStage))
    def test_critical_never_downgraded(self, stage):
        issue = make_issue(category="loudness", severity="critical")
        [filtered] = filter_issues_for_stage([issue], stage)
        assert filtered.severity == "critical"

    def test_early_stage_leaves_other_categories(self):
        issue = make_issue(category="dynamics", severity="warning")
        assert filter_issues_for_stage([issue], ProductionStage.ROUGH_MIX) == [issue]

    @pytest.mark.parametrize("stage", [ProductionStage.MIX_REVIEW, ProductionStage.PRE_MASTER])
    def test_review_stage_annotates(self, stage):
        issue = make_issue(category="loudness", severity="warning")
        [filtered] = filter_issues_for_stage([issue], stage)
        assert filtered.severity == "warning"
        assert filtered.description.endswith(REVIEW_STAGE_NOTE)

    def test_mastered_unchanged(self):
        issues = [make_issue(category="loudness"), make_issue(category="tempo")]
        assert filter_issues_for_stage(issues, ProductionStage.MASTERED) == issues

    def test_unknown_stage_annotates_mastering_categories(self):
        loudness = make_issue(category="loudness")
        mastering = make_issue(category="mastering")
        tempo = make_issue(category="tempo")
        filtered = filter_issues_for_stage([loudness, mastering, tempo], ProductionStage.UNKNOWN)
        assert filtered[0].description.endswith(UNKNOWN_STAGE_NOTE)
        assert filtered[1].description.endswith(UNKNOWN_STAGE_NOTE)
        assert filtered[2] == tempo

    def test_keeps_length_and_order(self):
        issues = [make_issue(title=str(i)) for i in range(4)]
        filtered = filter_issues_for_stage(issues, ProductionStage.MIXING)
        assert titles(filtered) == ["0", "1", "2", "3"]


class TestStageTips:
    def _score(self, dynamics=1.0):
        breakdown = ScoreBreakdown(1.0, dynamics, 1.0, 1.0, 1.0, 1.0)
        return Score(overall=90, breakdown=breakdown)

    def test_rough_mix_loudness_tip(self):
        tips = stage_tips(ProductionStage.ROUGH_MIX, [make_issue(category="loudness")], self._score())
        assert len(tips) == 5
        assert tips[-1].startswith("Loudness will be addressed in mastering")

    def test_mixing_frequency_tip(self):
        issues = [make_issue(category="frequency_balance")]
        tips = stage_tips(ProductionStage.MIXING, issues, self._score())
        assert any("frequency issues" in tip for tip in tips)

    def test_pre_master_dynamics_tip(self):
        tips = stage_tips(ProductionStage.PRE_MASTER, [], self._score(dynamics=0.5))
        assert any("over-compressed" in tip for tip in tips)
        assert not any(
            "over-compressed" in tip
            for tip in stage_tips(ProductionStage.PRE_MASTER, [], self._score())
        )

    def test_every_stage_has_tips(self):
        for stage in ProductionStage:
            assert stage_tips(stage, [], self._score())

    def test_unknown_stage(self):
        tips = stage_tips(ProductionStage.UNKNOWN, [], self._score())
        assert tips[0].startswith("Identify your current stage")

    def test_uses_real_score(self, catalog, quiet_features):
        benchmark = catalog.get("Pop")
        issues = diagnose(quiet_features, benchmark)
        tips = stage_tips(ProductionStage.ROUGH_MIX, issues, score(quiet_features, benchmark))
        assert any("Loudness" in tip for tip in tips)


def test_format_duration():
    assert format_duration(165) == "2:45"
    assert format_duration(59.9) == "0:59"
