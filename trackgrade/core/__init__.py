"""
Core module: data models, benchmarks, scoring, diagnostics and the
single-track analysis pipeline.
"""

from trackgrade.core.models import (
    Benchmark,
    FeatureVector,
    FrequencyBalance,
    Issue,
    MetricComparison,
    ProductionStage,
    Score,
    ScoreBreakdown,
    TrackAnalysis,
    TrackInput,
)
from trackgrade.core.benchmarks import BenchmarkCatalog, create_benchmark_catalog
from trackgrade.core.scorer import compare_metric, score
from trackgrade.core.diagnostics import diagnose, filter_issues_for_stage, stage_tips
from trackgrade.core.cache import CacheManager, create_cache_manager
from trackgrade.core.analyzer import TrackAnalyzer, create_track_analyzer
from trackgrade.core.batch_processor import BatchProcessor, BatchResult, create_batch_processor
from trackgrade.core.loader import TrackLoader, create_track_loader

__all__ = [
    # Models
    "Benchmark",
    "FeatureVector",
    "FrequencyBalance",
    "Issue",
    "MetricComparison",
    "ProductionStage",
    "Score",
    "ScoreBreakdown",
    "TrackAnalysis",
    "TrackInput",
    # Scoring
    "BenchmarkCatalog",
    "create_benchmark_catalog",
    "score",
    "compare_metric",
    "diagnose",
    "filter_issues_for_stage",
    "stage_tips",
    # Pipeline
    "CacheManager",
    "create_cache_manager",
    "TrackAnalyzer",
    "create_track_analyzer",
    "BatchProcessor",
    "BatchResult",
    "create_batch_processor",
    "TrackLoader",
    "create_track_loader",
    # Output (lazy loaded, they depend on the catalog package)
    "ResultWriter",
    "TextResultWriter",
    "JSONResultWriter",
    "create_result_writer",
]


def __getattr__(name: str):
    """Lazy load the result writers."""
    if name in ("ResultWriter", "TextResultWriter", "JSONResultWriter", "create_result_writer"):
        from trackgrade.core import result_writer
        return getattr(result_writer, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
