"""
Catalog analysis: trends and consistency across an artist's releases.
"""

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
from trackgrade.catalog.aggregator import (
    CatalogAggregator,
    percent_change,
    split_halves,
    timeline,
)

__all__ = [
    "CatalogAggregator",
    "CatalogReport",
    "GenreConsistency",
    "Insight",
    "QualityProgression",
    "SonicIdentity",
    "TimelinePoint",
    "TrackHighlight",
    "Trend",
    "percent_change",
    "split_halves",
    "timeline",
]
