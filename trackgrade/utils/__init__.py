"""
Utility modules for configuration, logging, and error handling.
"""

from trackgrade.utils.errors import (
    TrackGradeError,
    InvalidFeatureVectorError,
    TrackLoadError,
    UnsupportedFormatError,
    AnalysisError,
    ConfigurationError,
)
from trackgrade.utils.logging import (
    JSONFormatter,
    create_logger_with_context,
    get_logger,
    setup_logging,
)
from trackgrade.utils.config import ConfigManager, load_config

__all__ = [
    "TrackGradeError",
    "InvalidFeatureVectorError",
    "TrackLoadError",
    "UnsupportedFormatError",
    "AnalysisError",
    "ConfigurationError",
    "get_logger",
    "setup_logging",
    "create_logger_with_context",
    "JSONFormatter",
    "ConfigManager",
    "load_config",
]
