"""
Single-track analyzer.

Orchestrates validation, benchmark lookup, scoring, diagnostics and the
narrative parts of a TrackAnalysis. Results are memoized in an optional
CacheManager.
"""

import time
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Union

from trackgrade.core.benchmarks import BenchmarkCatalog, create_benchmark_catalog
from trackgrade.core.cache import CacheManager, create_cache_manager, make_cache_key
from trackgrade.core.diagnostics import diagnose, filter_issues_for_stage, stage_tips
from trackgrade.core.models import (
    Benchmark,
    FeatureVector,
    Issue,
    ProductionStage,
    Score,
    TrackAnalysis,
)
from trackgrade.core.scorer import score as score_track
from trackgrade.utils.logging import create_logger_with_context

STRENGTH_THRESHOLD: float = 0.8
IMPROVEMENT_THRESHOLD: float = 0.7

ASSESSMENT_BANDS = (
    (90, (
        "Outstanding! This mix is release-ready and competitive with commercial "
        "standards. Minor refinements could take it to the next level, but "
        "you're in excellent shape."
    )),
    (80, (
        "Great work! This mix is very close to professional standards. Address "
        "the key issues identified and you'll have a polished, competitive track."
    )),
    (70, (
        "Good foundation! The core elements are there, but several improvements "
        "will help this mix compete with commercial releases. Focus on the "
        "critical and warning issues first."
    )),
    (60, (
        "Solid start! This mix has potential but needs significant work in "
        "several areas. Prioritize the critical issues, then work through the "
        "warnings systematically."
    )),
)

LOW_SCORE_ASSESSMENT = (
    "This mix needs substantial work to reach professional standards. Focus on "
    "fundamentals: loudness, frequency balance, and dynamics. Consider working "
    "with an experienced mix engineer or taking time to study reference tracks."
)


class TrackAnalyzer:
    """
    Turns one feature vector into a TrackAnalysis.

    Stateless apart from the injected cache; safe to share between
    threads.
    """

    def __init__(
        self,
        catalog: BenchmarkCatalog,
        cache: Optional[CacheManager] = None,
        default_genre: Optional[str] = None,
        default_stage: Union[str, ProductionStage] = ProductionStage.UNKNOWN,
    ):
        """
        Initialize analyzer.

        Args:
            catalog: Benchmark catalog used for every lookup
            cache: Optional analysis cache
            default_genre: Genre label used when a request gives none
            default_stage: Stage used when a request gives none
        """
        self.catalog = catalog
        self.cache = cache
        self.default_genre = default_genre or catalog.default_genre
        self.default_stage = ProductionStage.parse(default_stage)

    def analyze(
        self,
        features: FeatureVector,
        genre: Optional[str] = None,
        stage: Union[str, ProductionStage, None] = None,
        track_name: str = "Untitled",
    ) -> TrackAnalysis:
        """
        Analyze one track.

        Args:
            features: Feature vector for the track
            genre: Free-text genre label; unknown labels use the default benchmark
            stage: Production stage tag; unrecognized tags mean "unknown"
            track_name: Display name carried into the result

        Returns:
            TrackAnalysis

        Raises:
            InvalidFeatureVectorError: If the vector fails validation
        """
        features.validate()

        requested_genre = genre if genre is not None else self.default_genre
        production_stage = (
            ProductionStage.parse(stage) if stage is not None else self.default_stage
        )
        benchmark = self.catalog.get(requested_genre)
        log = create_logger_with_context(
            "analyzer",
            {"track": track_name, "genre": benchmark.genre, "stage": production_stage.value},
        )

        key = make_cache_key(features, benchmark.genre, production_stage)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                log.debug("Serving cached analysis")
                if cached.track_name != track_name or cached.requested_genre != requested_genre:
                    return replace(cached, track_name=track_name, requested_genre=requested_genre)
                return cached

        start_time = time.time()
        analysis = self._build(features, benchmark, production_stage, track_name, requested_genre)

        if self.cache is not None:
            self.cache.put(key, analysis)

        log.info(
            f"Scored {analysis.score.overall}/100 with {len(analysis.issues)} issue(s) "
            f"in {time.time() - start_time:.4f}s"
        )
        return analysis

    def _build(
        self,
        features: FeatureVector,
        benchmark: Benchmark,
        stage: ProductionStage,
        track_name: str,
        requested_genre: Optional[str],
    ) -> TrackAnalysis:
        score = score_track(features, benchmark)
        issues = filter_issues_for_stage(diagnose(features, benchmark), stage)

        return TrackAnalysis(
            track_name=track_name,
            features=features,
            benchmark=benchmark,
            score=score,
            issues=tuple(issues),
            strengths=tuple(identify_strengths(features, benchmark, score)),
            overall_assessment=overall_assessment(score),
            next_steps=tuple(next_steps(issues, score)),
            stage=stage,
            stage_tips=tuple(stage_tips(stage, issues, score)),
            reference_tracks=benchmark.reference_tracks,
            requested_genre=requested_genre,
        )


def identify_strengths(
    features: FeatureVector,
    benchmark: Benchmark,
    score: Score,
) -> List[str]:
    """Positive statements for high sub-scores and standout measurements."""
    breakdown = score.breakdown
    statements = (
        (breakdown.loudness, "Excellent loudness levels - competitive and professional"),
        (breakdown.dynamics,
         "Great dynamic range - punchy and engaging without over-compression"),
        (breakdown.frequency_balance,
         "Well-balanced frequency spectrum - clear and full-bodied"),
        (breakdown.stereo_imaging,
         "Excellent stereo image - wide but focused with good center"),
        (breakdown.genre_alignment,
         f"Strong {benchmark.genre} characteristics - fits the genre well"),
        (breakdown.commercial_readiness, "Commercial-ready production quality"),
    )
    strengths = [text for value, text in statements if value >= STRENGTH_THRESHOLD]

    width = features.stereo_width
    if width is not None and 0.75 <= width <= 0.85:
        strengths.append("Perfect stereo width - immersive yet mono-compatible")

    balance = features.frequency_balance
    if balance is not None and balance.mid >= 0.7 and balance.presence >= 0.7:
        strengths.append(
            "Excellent midrange clarity - vocals and instruments will cut through"
        )

    return strengths


def overall_assessment(score: Score) -> str:
    """One-paragraph verdict picked by overall score band."""
    for floor, text in ASSESSMENT_BANDS:
        if score.overall >= floor:
            return text
    return LOW_SCORE_ASSESSMENT


def next_steps(issues: Sequence[Issue], score: Score) -> List[str]:
    """Ordered action list: blocking issues first, then general practice."""
    critical = [issue for issue in issues if issue.severity == "critical"]
    warnings = [issue for issue in issues if issue.severity == "warning"]
    steps: List[str] = []

    if critical:
        plural = "s" if len(critical) > 1 else ""
        categories = ", ".join(issue.category for issue in critical)
        steps.append(f"Address {len(critical)} critical issue{plural} first: {categories}")

    if warnings:
        plural = "s" if len(warnings) > 1 else ""
        categories = ", ".join(issue.category for issue in warnings[:3])
        steps.append(f"Fix {len(warnings)} warning{plural}: {categories}")

    if score.breakdown.frequency_balance < IMPROVEMENT_THRESHOLD:
        steps.append("Analyze frequency spectrum with a visual EQ to identify problem areas")

    if score.breakdown.loudness < IMPROVEMENT_THRESHOLD:
        steps.append("Study mastering techniques or consider hiring a mastering engineer")

    steps.append("A/B reference your mix against 3-5 commercial tracks in your genre")
    steps.append("Take breaks and return with fresh ears before making final decisions")

    if score.overall < 80:
        steps.append("Consider getting feedback from experienced mixing engineers or producers")

    return steps


def create_track_analyzer(
    config: Optional[Dict[str, Any]] = None,
    catalog: Optional[BenchmarkCatalog] = None,
) -> TrackAnalyzer:
    """
    Factory function to create a fully configured analyzer.

    Args:
        config: Full configuration dict
        catalog: Pre-built catalog; built from config when omitted

    Returns:
        TrackAnalyzer: Configured analyzer
    """
    if config is None:
        config = {}

    if catalog is None:
        catalog = create_benchmark_catalog(config)

    analysis_config = config.get("analysis", {})
    cache = create_cache_manager(config.get("cache", {}))

    return TrackAnalyzer(
        catalog=catalog,
        cache=cache,
        default_genre=analysis_config.get("default_genre"),
        default_stage=analysis_config.get("default_stage", ProductionStage.UNKNOWN),
    )
