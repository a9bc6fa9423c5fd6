"""
Catalog aggregator.

Turns an ordered sequence of track analyses (release order, oldest
first) into a CatalogReport: quality progression, genre consistency,
sonic identity, metric trends, insights and recommendations.
"""

import logging
import math
from collections import Counter
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

import numpy as np

from trackgrade.catalog.models import (
    CatalogReport,
    GenreConsistency,
    Insight,
    QualityProgression,
    SonicIdentity,
    TimelinePoint,
    TrackHighlight,
    Trend,
)
from trackgrade.core.models import TrackAnalysis

T = TypeVar("T")

PROGRESSION_THRESHOLD: float = 5.0
TREND_DIRECTION_THRESHOLD: float = 3.0
LOUDNESS_TREND_THRESHOLD: float = 1.0
SCORE_TREND_THRESHOLD: float = 3.0
MIN_TRACKS_FOR_PROGRESSION: int = 3
MIN_TRACKS_FOR_TRENDS: int = 3
OUTLIER_STDDEVS: float = 2.0
TIMELINE_NAME_LENGTH: int = 20

# (metric, value getter, threshold, improving text, declining text)
TREND_METRICS: Tuple[Tuple[str, Callable[[TrackAnalysis], float], float, str, str], ...] = (
    (
        "Loudness",
        lambda analysis: analysis.features.loudness_db,
        LOUDNESS_TREND_THRESHOLD,
        "Your mixes are getting louder over time",
        "Your mixes are getting quieter over time",
    ),
    (
        "Dynamics",
        lambda analysis: analysis.score.breakdown.dynamics * 100,
        SCORE_TREND_THRESHOLD,
        "Your dynamic range control is improving",
        "Your dynamic range control is declining",
    ),
    (
        "Frequency Balance",
        lambda analysis: analysis.score.breakdown.frequency_balance * 100,
        SCORE_TREND_THRESHOLD,
        "Your frequency balance is improving",
        "Your frequency balance needs attention",
    ),
)


def split_halves(values: Sequence[T]) -> Tuple[List[T], List[T]]:
    """
    Split a sequence at floor(n / 2).

    The second half gets the extra element for odd lengths:
    ``[1, 2, 3, 4, 5]`` -> ``([1, 2], [3, 4, 5])``.
    """
    middle = len(values) // 2
    return list(values[:middle]), list(values[middle:])


def percent_change(values: Sequence[float]) -> Optional[float]:
    """
    Relative change from the first-half average to the second-half average.

    Divides by the magnitude of the first-half average so that a rise in a
    negative quantity (dB) is still a positive change.

    Returns:
        Change in percent, or None when undefined (fewer than 2 values or
        a zero first-half average)
    """
    first, second = split_halves(values)
    if not first or not second:
        return None

    first_avg = float(np.mean(first))
    if first_avg == 0:
        return None
    return (float(np.mean(second)) - first_avg) / abs(first_avg) * 100


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class CatalogAggregator:
    """
    Builds catalog reports from finished track analyses.

    Stateless: run it once all analyses for the catalog are available.
    """

    def __init__(self):
        self.logger = logging.getLogger("catalog")

    def aggregate(self, analyses: Sequence[TrackAnalysis]) -> CatalogReport:
        """
        Analyze a catalog.

        Args:
            analyses: Track analyses in release order

        Returns:
            CatalogReport

        Raises:
            ValueError: If analyses is empty
        """
        if not analyses:
            raise ValueError("Cannot aggregate an empty catalog")

        self.logger.info(f"Aggregating catalog of {len(analyses)} tracks")

        progression = self.quality_progression(analyses)
        genre = self.genre_consistency(analyses)
        sonic = self.sonic_identity(analyses)
        trends = self.trends(analyses)
        insights = self.insights(analyses, progression, genre, sonic)

        ranked = _rank_by_score(analyses)
        best = ranked[0]

        report = CatalogReport(
            total_tracks=len(analyses),
            average_score=progression.average_score,
            score_trend="stable" if progression.trend == "inconsistent" else progression.trend,
            quality_progression=progression,
            genre_consistency=genre,
            sonic_identity=sonic,
            trends=tuple(trends),
            insights=tuple(insights),
            best_performing_track=TrackHighlight(
                name=best.track_name,
                score=best.score.overall,
                notes=best.strengths,
            ),
            needs_improvement=tuple(
                TrackHighlight(
                    name=analysis.track_name,
                    score=analysis.score.overall,
                    notes=tuple(issue.title for issue in analysis.issues[:3]),
                )
                for analysis in ranked[-2:]
            ),
            overall_recommendations=tuple(
                self.recommendations(progression, genre, sonic, trends)
            ),
            next_release_guidance=tuple(self.next_release_guidance(best, progression, sonic)),
            timeline=tuple(timeline(analyses)),
        )

        self.logger.info(
            f"Catalog average {report.average_score}/100, trend {report.score_trend}, "
            f"{len(report.trends)} metric trend(s)"
        )
        return report

    def quality_progression(self, analyses: Sequence[TrackAnalysis]) -> QualityProgression:
        """Classify the overall score direction across release order."""
        scores = [analysis.score.overall for analysis in analyses]

        trend = "inconsistent"
        if len(scores) >= MIN_TRACKS_FOR_PROGRESSION:
            first, second = split_halves(scores)
            improvement = float(np.mean(second)) - float(np.mean(first))
            if improvement > PROGRESSION_THRESHOLD:
                trend = "improving"
            elif improvement < -PROGRESSION_THRESHOLD:
                trend = "declining"

        best_score = max(scores)
        worst_score = min(scores)
        best_index = scores.index(best_score)
        weakest_index = len(scores) - 1 - scores[::-1].index(worst_score)

        improvement_rate = None
        if trend == "improving":
            improvement_rate = abs(scores[-1] - scores[0]) / len(scores)

        return QualityProgression(
            trend=trend,
            average_score=round_half_up(float(np.mean(scores))),
            score_range=(worst_score, best_score),
            best_track=analyses[best_index].track_name,
            weakest_track=analyses[weakest_index].track_name,
            improvement_rate=improvement_rate,
        )

    def genre_consistency(self, analyses: Sequence[TrackAnalysis]) -> GenreConsistency:
        """Share of tracks scored against the most common benchmark genre."""
        total = len(analyses)
        # Counter keeps first-seen order, so ties go to the earlier genre
        counts = Counter(analysis.genre for analysis in analyses)
        ranked = sorted(counts.items(), key=lambda item: -item[1])
        primary_genre, primary_count = ranked[0]

        score = round_half_up(primary_count / total * 100)
        if score >= 80:
            recommendation = (
                f"Strong {primary_genre} identity. Fans know what to expect from your music."
            )
        elif score >= 60:
            recommendation = (
                f"Mostly {primary_genre} but with some variety. Consider clarifying "
                "your sound or embracing genre-blending."
            )
        else:
            recommendation = (
                "Very diverse sound. Consider whether you want to be known for "
                "versatility or focus on one genre."
            )

        return GenreConsistency(
            primary_genre=primary_genre,
            consistency_score=score,
            genre_distribution=tuple(
                (genre, round_half_up(count / total * 100)) for genre, count in ranked
            ),
            recommendation=recommendation,
        )

    def sonic_identity(self, analyses: Sequence[TrackAnalysis]) -> SonicIdentity:
        """Tempo/energy signature, its consistency, and the tracks outside it."""
        tempos = np.array([analysis.features.tempo_bpm for analysis in analyses], dtype=float)
        energies = np.array([analysis.features.energy for analysis in analyses], dtype=float)

        avg_tempo = float(tempos.mean())
        avg_energy = float(energies.mean())
        tempo_std = float(tempos.std())
        energy_std = float(energies.std())

        traits = []
        if avg_tempo < 90:
            traits.append("Slow, deliberate tempos")
        elif avg_tempo > 130:
            traits.append("Upbeat, energetic tempos")
        else:
            traits.append("Mid-tempo grooves")

        if avg_energy > 0.7:
            traits.append("High-energy production")
        elif avg_energy < 0.5:
            traits.append("Laid-back, chill vibe")
        else:
            traits.append("Balanced energy")

        outlier_mask = (
            (np.abs(tempos - avg_tempo) > tempo_std * OUTLIER_STDDEVS)
            | (np.abs(energies - avg_energy) > energy_std * OUTLIER_STDDEVS)
        )
        outliers = tuple(
            analysis.track_name
            for analysis, is_outlier in zip(analyses, outlier_mask)
            if is_outlier
        )

        tempo_consistency = max(0.0, 100 - tempo_std / avg_tempo * 100)
        energy_consistency = max(0.0, 100 - energy_std * 100)
        score = round_half_up((tempo_consistency + energy_consistency) / 2)

        if score >= 75:
            recommendation = "Strong sonic signature. Your tracks have a recognizable sound."
        elif score >= 50:
            recommendation = (
                "Moderate consistency. Consider developing a more distinct sonic identity."
            )
        else:
            recommendation = (
                "Very diverse sonic palette. Decide if you want a signature sound "
                "or embrace variety."
            )

        if outliers:
            self.logger.debug(f"Sonic outliers: {', '.join(outliers)}")

        return SonicIdentity(
            tempo_range=(
                round_half_up(avg_tempo - tempo_std),
                round_half_up(avg_tempo + tempo_std),
            ),
            energy_range=(
                max(0.0, avg_energy - energy_std),
                min(1.0, avg_energy + energy_std),
            ),
            common_traits=tuple(traits),
            consistency_score=score,
            outlier_tracks=outliers,
            recommendation=recommendation,
        )

    def trends(self, analyses: Sequence[TrackAnalysis]) -> List[Trend]:
        """
        Metric trends between the two halves of the catalog.

        Empty for catalogs shorter than three tracks.
        """
        if len(analyses) < MIN_TRACKS_FOR_TRENDS:
            return []

        trends = []
        for metric, getter, threshold, rising, falling in TREND_METRICS:
            change = percent_change([getter(analysis) for analysis in analyses])
            if change is None or abs(change) <= threshold:
                continue

            if change > TREND_DIRECTION_THRESHOLD:
                direction, description = "improving", rising
            elif change < -TREND_DIRECTION_THRESHOLD:
                direction, description = "declining", falling
            else:
                continue

            trends.append(Trend(
                metric=metric,
                direction=direction,
                change_percentage=abs(change),
                description=description,
            ))
        return trends

    def insights(
        self,
        analyses: Sequence[TrackAnalysis],
        progression: QualityProgression,
        genre: GenreConsistency,
        sonic: SonicIdentity,
    ) -> List[Insight]:
        insights = []

        if progression.trend == "improving":
            insights.append(Insight(
                type="strength",
                title="Consistent Growth",
                description=(
                    "Your production quality has improved by an average of "
                    f"{progression.improvement_rate:.1f} points per release. "
                    "Keep up the momentum!"
                ),
            ))
        elif progression.trend == "declining":
            insights.append(Insight(
                type="weakness",
                title="Quality Inconsistency",
                description=(
                    "Recent releases score lower than earlier work. Review what "
                    "made your best tracks successful."
                ),
                tracks_affected=tuple(analysis.track_name for analysis in analyses[-2:]),
            ))

        if genre.consistency_score < 60:
            genres = ", ".join(name for name, _ in genre.genre_distribution)
            insights.append(Insight(
                type="opportunity",
                title="Genre Exploration",
                description=(
                    f"You're experimenting with multiple genres ({genres}). Consider "
                    "whether to specialize or embrace genre-blending as your brand."
                ),
            ))

        if sonic.consistency_score >= 75:
            insights.append(Insight(
                type="strength",
                title="Strong Sonic Identity",
                description=(
                    f"You have a recognizable sound ({', '.join(sonic.common_traits)}). "
                    "This helps with fan retention."
                ),
            ))

        if sonic.outlier_tracks:
            insights.append(Insight(
                type="trend",
                title="Sonic Experimentation",
                description=(
                    "Some tracks deviate from your typical sound. These could be "
                    "creative risks or genre exploration."
                ),
                tracks_affected=sonic.outlier_tracks,
            ))

        return insights

    def recommendations(
        self,
        progression: QualityProgression,
        genre: GenreConsistency,
        sonic: SonicIdentity,
        trends: Sequence[Trend],
    ) -> List[str]:
        recommendations = []

        low, high = progression.score_range
        if progression.trend == "declining" or high - low > 20:
            recommendations.append(
                "Focus on consistency. Study your highest-scoring tracks and "
                "replicate their production approach."
            )

        if genre.consistency_score < 70:
            recommendations.append(
                f"Consider establishing yourself in {genre.primary_genre} before "
                "branching out, or embrace genre-blending as your unique brand."
            )

        if sonic.consistency_score < 60:
            recommendations.append(
                "Develop a signature sound. Consistent tempo ranges, production "
                "techniques, and sonic choices help fans recognize your music instantly."
            )

        declining = [trend.metric.lower() for trend in trends if trend.direction == "declining"]
        if declining:
            recommendations.append(
                f"Pay attention to {' and '.join(declining)} - these metrics are "
                "declining across recent releases."
            )

        if progression.average_score < 70:
            recommendations.append(
                "Consider investing in better mixing/mastering or taking additional "
                "production courses to elevate overall quality."
            )

        return recommendations

    def next_release_guidance(
        self,
        best: TrackAnalysis,
        progression: QualityProgression,
        sonic: SonicIdentity,
    ) -> List[str]:
        features = best.features
        guidance = [
            f'Model your next release after "{best.track_name}" - your '
            f"highest-scoring track ({best.score.overall}/100).",
            f"Target tempo: {round_half_up(features.tempo_bpm)} BPM (±10), "
            f"Energy: {round_half_up(features.energy * 100)}%",
        ]

        if sonic.consistency_score >= 70:
            guidance.append(
                f"Stay within your sonic signature: {', '.join(sonic.common_traits)}"
            )

        if progression.trend == "improving":
            guidance.append("Continue your upward trajectory - you're on the right path!")
        else:
            guidance.append("Focus on quality over quantity for your next release.")

        return guidance


def timeline(analyses: Sequence[TrackAnalysis]) -> List[TimelinePoint]:
    """Per-track chart rows in release order."""
    points = []
    for number, analysis in enumerate(analyses, start=1):
        name = analysis.track_name
        if len(name) > TIMELINE_NAME_LENGTH:
            name = name[:TIMELINE_NAME_LENGTH - 3] + "..."

        breakdown = analysis.score.breakdown
        points.append(TimelinePoint(
            track_name=name,
            track_number=number,
            overall_score=analysis.score.overall,
            loudness=round_half_up(breakdown.loudness * 100),
            dynamics=round_half_up(breakdown.dynamics * 100),
            frequency_balance=round_half_up(breakdown.frequency_balance * 100),
            stereo_imaging=round_half_up(breakdown.stereo_imaging * 100),
            genre_alignment=round_half_up(breakdown.genre_alignment * 100),
            commercial_readiness=round_half_up(breakdown.commercial_readiness * 100),
        ))
    return points


def _rank_by_score(analyses: Sequence[TrackAnalysis]) -> List[TrackAnalysis]:
    """Highest score first; ties keep release order."""
    return sorted(analyses, key=lambda analysis: -analysis.score.overall)
