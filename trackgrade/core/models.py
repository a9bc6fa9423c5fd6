"""
Core data models for trackgrade.

Immutable value objects for one track's measurements, the benchmark it is
judged against, and the resulting score, issues and analysis bundle.
"""

from __future__ import annotations

import hashlib
import json
import math
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from trackgrade.utils.errors import InvalidFeatureVectorError

Range = Tuple[float, float]

ISSUE_CATEGORIES = frozenset({
    "loudness", "dynamics", "frequency_balance", "stereo_imaging",
    "tempo", "energy", "structure", "genre_alignment", "mastering",
})

SEVERITIES = ("critical", "warning", "suggestion")


class ProductionStage(Enum):
    """Where a track sits in the mixing/mastering workflow."""
    ROUGH_MIX = "rough-mix"
    MIXING = "mixing"
    MIX_REVIEW = "mix-review"
    PRE_MASTER = "pre-master"
    MASTERED = "mastered"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Union[str, "ProductionStage", None]) -> "ProductionStage":
        """
        Resolve a stage tag, treating anything unrecognized as UNKNOWN.

        Accepts enum members, their values in any case, and the legacy
        "not-sure" tag.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.UNKNOWN

        tag = value.strip().lower().replace("_", "-").replace(" ", "-")
        if tag == "not-sure":
            return cls.UNKNOWN
        for stage in cls:
            if stage.value == tag:
                return stage
        return cls.UNKNOWN


@dataclass(frozen=True)
class FrequencyBalance:
    """Relative energy in seven spectral bands, each in [0.0, 1.0]."""

    sub_bass: float  # 20-60 Hz
    bass: float  # 60-250 Hz
    low_mid: float  # 250-500 Hz
    mid: float  # 500-2000 Hz
    high_mid: float  # 2-4 kHz
    presence: float  # 4-6 kHz
    brilliance: float  # 6-20 kHz

    def values(self) -> Tuple[float, ...]:
        """Band values from lowest to highest."""
        return tuple(getattr(self, f.name) for f in fields(self))

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class FeatureVector:
    """
    Numeric fingerprint of one recording.

    Produced outside trackgrade (audio decoding, a streaming provider, a
    test fixture) and treated as read-only input. Optional measurements
    are None when the producer could not supply them.
    """

    tempo_bpm: float
    danceability: float
    energy: float
    valence: float
    acousticness: float
    instrumentalness: float
    speechiness: float
    loudness_db: float
    duration_seconds: float

    dynamic_range_db: Optional[float] = None
    stereo_width: Optional[float] = None
    frequency_balance: Optional[FrequencyBalance] = None
    intro_length_seconds: Optional[float] = None
    outro_length_seconds: Optional[float] = None
    peak_db: Optional[float] = None
    rms_db: Optional[float] = None
    crest_factor: Optional[float] = None

    key: Optional[int] = None  # 0=C ... 11=B
    mode: Optional[str] = None  # "major" / "minor"
    key_confidence: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FeatureVector":
        """
        Build a vector from a plain mapping (manifest entry, JSON payload).

        Unknown keys are ignored. Values are coerced to float; the result
        is not range-checked, call :meth:`validate` for that.

        Raises:
            InvalidFeatureVectorError: Required key missing or value not numeric
        """
        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            if data.get(f.name) is None:
                if f.name in _REQUIRED_FIELDS:
                    raise InvalidFeatureVectorError(
                        f"Missing required feature: {f.name}",
                        field_name=f.name,
                    )
                continue

            raw = data[f.name]
            if f.name == "frequency_balance":
                kwargs[f.name] = _band_map(raw)
            elif f.name == "mode":
                kwargs[f.name] = str(raw).lower()
            elif f.name == "key":
                kwargs[f.name] = _to_int(f.name, raw)
            else:
                kwargs[f.name] = _to_float(f.name, raw)

        return cls(**kwargs)

    def validate(self) -> None:
        """
        Reject vectors that would poison the scores.

        Raises:
            InvalidFeatureVectorError: Naming the first offending field
        """
        for name in _UNIT_FIELDS:
            _check_unit(name, getattr(self, name))

        _check_finite("loudness_db", self.loudness_db)
        _check_positive("tempo_bpm", self.tempo_bpm)
        _check_positive("duration_seconds", self.duration_seconds)

        if self.dynamic_range_db is not None:
            _check_non_negative("dynamic_range_db", self.dynamic_range_db)
        if self.stereo_width is not None:
            _check_unit("stereo_width", self.stereo_width)
        if self.frequency_balance is not None:
            for band in fields(self.frequency_balance):
                _check_unit(
                    f"frequency_balance.{band.name}",
                    getattr(self.frequency_balance, band.name),
                )
        for name in ("intro_length_seconds", "outro_length_seconds"):
            value = getattr(self, name)
            if value is not None:
                _check_non_negative(name, value)
        for name in ("peak_db", "rms_db", "crest_factor"):
            value = getattr(self, name)
            if value is not None:
                _check_finite(name, value)

        if self.key is not None and (
            isinstance(self.key, bool) or not isinstance(self.key, int)
            or not 0 <= self.key <= 11
        ):
            raise InvalidFeatureVectorError(
                f"key must be an integer pitch class 0-11, got {self.key!r}",
                field_name="key", value=self.key,
            )
        if self.mode is not None and self.mode not in ("major", "minor"):
            raise InvalidFeatureVectorError(
                f"mode must be 'major' or 'minor', got {self.mode!r}",
                field_name="mode", value=self.mode,
            )
        if self.key_confidence is not None:
            _check_unit("key_confidence", self.key_confidence)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result = {f.name: getattr(self, f.name) for f in fields(self)}
        if self.frequency_balance is not None:
            result["frequency_balance"] = self.frequency_balance.to_dict()
        return result

    def fingerprint(self) -> str:
        """SHA-256 of the canonical JSON form; identity for cache keys."""
        canonical = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


_REQUIRED_FIELDS = frozenset({
    "tempo_bpm", "danceability", "energy", "valence", "acousticness",
    "instrumentalness", "speechiness", "loudness_db", "duration_seconds",
})

_UNIT_FIELDS = (
    "danceability", "energy", "valence", "acousticness",
    "instrumentalness", "speechiness",
)


@dataclass(frozen=True)
class Benchmark:
    """Genre-specific target ranges a track is scored against."""

    genre: str
    tempo_bpm: Range
    danceability: Range
    energy: Range
    valence: Range
    loudness_db: Range
    dynamic_range_db: Range
    stereo_width: Range
    typical_intro_seconds: Range
    typical_duration_seconds: Range
    reference_tracks: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name in BENCHMARK_RANGE_FIELDS:
            low, high = getattr(self, name)
            if low > high:
                raise ValueError(
                    f"Benchmark '{self.genre}' range {name} is inverted: "
                    f"[{low}, {high}]"
                )

    def with_overrides(self, overrides: Mapping[str, Any]) -> "Benchmark":
        """
        Return a copy with some ranges replaced.

        Raises:
            ValueError: Unknown field or malformed range
        """
        changes: Dict[str, Any] = {}
        for name, value in overrides.items():
            if name in BENCHMARK_RANGE_FIELDS:
                changes[name] = to_range(name, value)
            elif name == "reference_tracks":
                changes[name] = tuple(str(track) for track in value)
            elif name == "genre":
                changes[name] = str(value)
            else:
                raise ValueError(f"Unknown benchmark field: {name}")
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result: Dict[str, Any] = {"genre": self.genre}
        for name in BENCHMARK_RANGE_FIELDS:
            result[name] = list(getattr(self, name))
        result["reference_tracks"] = list(self.reference_tracks)
        return result


BENCHMARK_RANGE_FIELDS = (
    "tempo_bpm", "danceability", "energy", "valence", "loudness_db",
    "dynamic_range_db", "stereo_width", "typical_intro_seconds",
    "typical_duration_seconds",
)


@dataclass(frozen=True)
class ScoreBreakdown:
    """The six weighted sub-scores, each in [0.0, 1.0]."""

    loudness: float
    dynamics: float
    frequency_balance: float
    stereo_imaging: float
    genre_alignment: float
    commercial_readiness: float

    def __post_init__(self) -> None:
        """Validate fields."""
        for f in fields(self):
            validate_unit_score(f.name, getattr(self, f.name))

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class Score:
    """Overall 0-100 score plus its breakdown."""

    overall: int
    breakdown: ScoreBreakdown

    def __post_init__(self) -> None:
        if not 0 <= self.overall <= 100:
            raise ValueError(f"Overall score must be in [0, 100], got {self.overall}")

    def to_dict(self) -> Dict[str, Any]:
        return {"overall": self.overall, "breakdown": self.breakdown.to_dict()}


@dataclass(frozen=True)
class Issue:
    """A single diagnostic finding with actionable recommendations."""

    category: str
    severity: str  # critical / warning / suggestion
    title: str
    description: str
    current_value: Union[float, str]
    target_value: Optional[Union[float, str, Range]] = None
    recommendations: Tuple[str, ...] = ()
    technical_details: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate fields."""
        validate_issue_category(self.category)
        validate_severity(self.severity)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        target = self.target_value
        return {
            "category": self.category,
            "severity": self.severity,
            "title": self.title,
            "description": self.description,
            "current_value": self.current_value,
            "target_value": list(target) if isinstance(target, tuple) else target,
            "recommendations": list(self.recommendations),
            "technical_details": self.technical_details,
        }


@dataclass(frozen=True)
class MetricComparison:
    """How one measured value sits relative to a benchmark range."""

    metric: str
    value: float
    benchmark_range: Range
    deviation: float  # distance from midpoint in half-widths, 0 = ideal
    status: str  # excellent / good / fair / needs_work

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["benchmark_range"] = list(self.benchmark_range)
        return result


@dataclass(frozen=True)
class TrackInput:
    """One unit of work: a named feature vector plus genre and stage labels."""

    name: str
    features: FeatureVector
    genre: Optional[str] = None
    stage: Optional[str] = None


@dataclass(frozen=True)
class TrackAnalysis:
    """Complete, immutable assessment of one track."""

    track_name: str
    features: FeatureVector
    benchmark: Benchmark
    score: Score
    issues: Tuple[Issue, ...]
    strengths: Tuple[str, ...]
    overall_assessment: str
    next_steps: Tuple[str, ...]
    stage: ProductionStage
    stage_tips: Tuple[str, ...] = ()
    reference_tracks: Tuple[str, ...] = ()
    requested_genre: Optional[str] = None

    @property
    def genre(self) -> str:
        """Genre of the benchmark actually used for scoring."""
        return self.benchmark.genre

    def issues_with_severity(self, severity: str) -> Tuple[Issue, ...]:
        """Issues of one severity, in emission order."""
        validate_severity(severity)
        return tuple(issue for issue in self.issues if issue.severity == severity)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "track_name": self.track_name,
            "requested_genre": self.requested_genre,
            "genre": self.genre,
            "stage": self.stage.value,
            "features": self.features.to_dict(),
            "benchmark": self.benchmark.to_dict(),
            "score": self.score.to_dict(),
            "issues": [issue.to_dict() for issue in self.issues],
            "strengths": list(self.strengths),
            "overall_assessment": self.overall_assessment,
            "next_steps": list(self.next_steps),
            "stage_tips": list(self.stage_tips),
            "reference_tracks": list(self.reference_tracks),
        }

    def to_json(self, indent: int = 2) -> str:
        """Export as JSON string."""
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def get_summary(self) -> str:
        """One-line human-readable summary."""
        critical = len(self.issues_with_severity("critical"))
        warnings = len(self.issues_with_severity("warning"))
        return (
            f"{self.track_name} | {self.genre} | {self.score.overall}/100 | "
            f"{critical} critical, {warnings} warning(s)"
        )


# Validation helpers

def validate_unit_score(name: str, value: float) -> None:
    """Validate a sub-score is in [0.0, 1.0]."""
    if not (0.0 <= value <= 1.0):
        raise ValueError(f"{name} must be in [0.0, 1.0], got {value}")


def validate_issue_category(category: str) -> None:
    """Validate issue category is one of allowed values."""
    if category not in ISSUE_CATEGORIES:
        raise ValueError(
            f"Invalid issue category: {category}. "
            f"Must be one of {sorted(ISSUE_CATEGORIES)}"
        )


def validate_severity(severity: str) -> None:
    """Validate severity is critical, warning or suggestion."""
    if severity not in SEVERITIES:
        raise ValueError(
            f"Invalid severity: {severity}. Must be one of {list(SEVERITIES)}"
        )


def to_range(name: str, value: Any) -> Range:
    """Coerce a two-element sequence into a (min, max) tuple."""
    try:
        low, high = value
        return (float(low), float(high))
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name} must be a [min, max] pair, got {value!r}") from e


def _to_float(name: str, raw: Any) -> float:
    if isinstance(raw, bool):
        raise InvalidFeatureVectorError(
            f"{name} must be numeric, got a boolean", field_name=name, value=raw
        )
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise InvalidFeatureVectorError(
            f"{name} must be numeric, got {raw!r}", field_name=name, value=raw
        ) from e


def _to_int(name: str, raw: Any) -> int:
    value = _to_float(name, raw)
    if not value.is_integer():
        raise InvalidFeatureVectorError(
            f"{name} must be an integer, got {raw!r}", field_name=name, value=raw
        )
    return int(value)


def _band_map(raw: Any) -> FrequencyBalance:
    if isinstance(raw, FrequencyBalance):
        return raw
    if not isinstance(raw, Mapping):
        raise InvalidFeatureVectorError(
            "frequency_balance must be a mapping of band name to level",
            field_name="frequency_balance", value=raw,
        )
    kwargs = {}
    for band in fields(FrequencyBalance):
        name = f"frequency_balance.{band.name}"
        if band.name not in raw:
            raise InvalidFeatureVectorError(
                f"Missing frequency band: {band.name}", field_name=name
            )
        kwargs[band.name] = _to_float(name, raw[band.name])
    return FrequencyBalance(**kwargs)


def _check_finite(name: str, value: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InvalidFeatureVectorError(
            f"{name} must be a finite number, got {value!r}",
            field_name=name, value=value,
        )


def _check_unit(name: str, value: float) -> None:
    _check_finite(name, value)
    if not 0.0 <= value <= 1.0:
        raise InvalidFeatureVectorError(
            f"{name} must be in [0.0, 1.0], got {value}",
            field_name=name, value=value,
        )


def _check_positive(name: str, value: float) -> None:
    _check_finite(name, value)
    if value <= 0:
        raise InvalidFeatureVectorError(
            f"{name} must be positive, got {value}",
            field_name=name, value=value,
        )


def _check_non_negative(name: str, value: float) -> None:
    _check_finite(name, value)
    if value < 0:
        raise InvalidFeatureVectorError(
            f"{name} must not be negative, got {value}",
            field_name=name, value=value,
        )
