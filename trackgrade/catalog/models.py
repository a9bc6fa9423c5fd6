"""
Catalog-level data models.

Everything the aggregator derives from an ordered list of track
analyses. Percentages and scores are on a 0-100 scale.
"""

import json
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple

from trackgrade.core.models import Range

PROGRESSION_TRENDS = ("improving", "declining", "inconsistent")
TREND_DIRECTIONS = ("improving", "declining", "stable")
INSIGHT_TYPES = ("strength", "weakness", "opportunity", "trend")


@dataclass(frozen=True)
class QualityProgression:
    """Direction of overall score over release order."""

    trend: str  # improving / declining / inconsistent
    average_score: int
    score_range: Tuple[int, int]
    best_track: str
    weakest_track: str
    improvement_rate: Optional[float] = None  # score points per track

    def __post_init__(self) -> None:
        if self.trend not in PROGRESSION_TRENDS:
            raise ValueError(f"Invalid progression trend: {self.trend}")

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["score_range"] = list(self.score_range)
        return result


@dataclass(frozen=True)
class GenreConsistency:
    """How much of the catalog was scored against one benchmark genre."""

    primary_genre: str
    consistency_score: int
    genre_distribution: Tuple[Tuple[str, int], ...]  # (genre, percent), most common first
    recommendation: str

    def distribution(self) -> Dict[str, int]:
        return dict(self.genre_distribution)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primary_genre": self.primary_genre,
            "consistency_score": self.consistency_score,
            "genre_distribution": self.distribution(),
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class SonicIdentity:
    """Tempo/energy signature of a catalog and the tracks that break it."""

    tempo_range: Tuple[int, int]
    energy_range: Range
    common_traits: Tuple[str, ...]
    consistency_score: int
    outlier_tracks: Tuple[str, ...]
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signature_sound": {
                "tempo_range": list(self.tempo_range),
                "energy_range": list(self.energy_range),
                "common_traits": list(self.common_traits),
            },
            "consistency_score": self.consistency_score,
            "outlier_tracks": list(self.outlier_tracks),
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class Trend:
    """A metric moving between the first and second half of the catalog."""

    metric: str
    direction: str
    change_percentage: float  # magnitude, always >= 0
    description: str

    def __post_init__(self) -> None:
        if self.direction not in TREND_DIRECTIONS:
            raise ValueError(f"Invalid trend direction: {self.direction}")
        if self.change_percentage < 0:
            raise ValueError("change_percentage is a magnitude and cannot be negative")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Insight:
    """One rule-based observation about the catalog."""

    type: str
    title: str
    description: str
    tracks_affected: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.type not in INSIGHT_TYPES:
            raise ValueError(f"Invalid insight type: {self.type}")

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["tracks_affected"] = list(self.tracks_affected)
        return result


@dataclass(frozen=True)
class TrackHighlight:
    """A track called out in the report with supporting notes."""

    name: str
    score: int
    notes: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "score": self.score, "notes": list(self.notes)}


@dataclass(frozen=True)
class TimelinePoint:
    """One row of the per-track score chart, sub-scores scaled to 0-100."""

    track_name: str
    track_number: int
    overall_score: int
    loudness: int
    dynamics: int
    frequency_balance: int
    stereo_imaging: int
    genre_alignment: int
    commercial_readiness: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CatalogReport:
    """Everything known about a catalog, in release order."""

    total_tracks: int
    average_score: int
    score_trend: str  # improving / declining / stable
    quality_progression: QualityProgression
    genre_consistency: GenreConsistency
    sonic_identity: SonicIdentity
    trends: Tuple[Trend, ...]
    insights: Tuple[Insight, ...]
    best_performing_track: TrackHighlight
    needs_improvement: Tuple[TrackHighlight, ...]
    overall_recommendations: Tuple[str, ...]
    next_release_guidance: Tuple[str, ...]
    timeline: Tuple[TimelinePoint, ...]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "total_tracks": self.total_tracks,
            "average_score": self.average_score,
            "score_trend": self.score_trend,
            "quality_progression": self.quality_progression.to_dict(),
            "genre_consistency": self.genre_consistency.to_dict(),
            "sonic_identity": self.sonic_identity.to_dict(),
            "trends": [trend.to_dict() for trend in self.trends],
            "insights": [insight.to_dict() for insight in self.insights],
            "best_performing_track": self.best_performing_track.to_dict(),
            "needs_improvement": [track.to_dict() for track in self.needs_improvement],
            "overall_recommendations": list(self.overall_recommendations),
            "next_release_guidance": list(self.next_release_guidance),
            "timeline": [point.to_dict() for point in self.timeline],
        }

    def to_json(self, indent: int = 2) -> str:
        """Export as JSON string."""
        return json.dumps(self.to_dict(), indent=indent)
