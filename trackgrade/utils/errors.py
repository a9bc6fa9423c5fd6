"""
Custom exceptions for trackgrade.

Only boundary problems are errors here: malformed feature vectors,
unreadable manifests and bad configuration. Unknown genres and stages
fall back to defaults and never raise.
"""

from typing import Any, Optional


class TrackGradeError(Exception):
    """Base exception for all trackgrade errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class InvalidFeatureVectorError(TrackGradeError):
    """Raised when a feature vector holds NaN or out-of-domain values."""

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        value: Optional[Any] = None,
    ):
        super().__init__(message, details={"field": field_name, "value": value})
        self.field_name = field_name
        self.value = value


class TrackLoadError(TrackGradeError):
    """Raised when a track manifest cannot be read or parsed."""

    def __init__(self, message: str, file_path: Optional[str] = None):
        super().__init__(message, details={"file_path": file_path})
        self.file_path = file_path


class UnsupportedFormatError(TrackLoadError):
    """Raised when a manifest has a suffix the loader does not understand."""

    def __init__(self, message: str, format: Optional[str] = None):
        super().__init__(message)
        self.format = format
        self.details = {"format": format}


class AnalysisError(TrackGradeError):
    """Raised when analysing a single track fails unexpectedly."""

    def __init__(
        self,
        message: str,
        track_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.track_name = track_name
        self.original_error = original_error
        self.details = {
            "track_name": track_name,
            "original_error": str(original_error) if original_error else None,
        }


class ConfigurationError(TrackGradeError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key
        self.details = {"config_key": config_key}
