"""
Manifest loader.

Reads a YAML or JSON document listing tracks and their feature vectors
and turns it into TrackInput records.

Manifest layout:

    genre: R&B            # optional default for every track
    stage: mixing         # optional default for every track
    tracks:
      - name: First Single
        genre: Pop        # optional per-track override
        features:
          tempo_bpm: 118
          ...
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from trackgrade.core.models import FeatureVector, TrackInput
from trackgrade.utils.errors import (
    InvalidFeatureVectorError,
    TrackLoadError,
    UnsupportedFormatError,
)

SUPPORTED_FORMATS = frozenset({".yaml", ".yml", ".json"})
MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10 MB

logger = logging.getLogger("loader")


class TrackLoader:
    """
    Loads manifests into TrackInput lists.

    Stateless; safe to share.
    """

    def __init__(self, max_file_size: int = MAX_FILE_SIZE, validate: bool = True):
        """
        Args:
            max_file_size: Largest manifest accepted, in bytes
            validate: Range-check every feature vector while loading
        """
        self.max_file_size = max_file_size
        self.validate = validate

    def load(self, file_path: Union[str, Path]) -> List[TrackInput]:
        """
        Load a manifest file.

        Args:
            file_path: Path to a .yaml, .yml or .json manifest

        Returns:
            Tracks in file order

        Raises:
            UnsupportedFormatError: Unknown suffix
            TrackLoadError: File missing, unreadable or malformed
            InvalidFeatureVectorError: A track's features fail validation
        """
        path = Path(file_path)
        self._validate_file(path)

        try:
            with open(path, "r", encoding="utf-8") as f:
                # JSON is a subset of YAML, one parser covers both
                document = yaml.safe_load(f)
        except (OSError, UnicodeDecodeError) as e:
            raise TrackLoadError(f"Cannot read manifest: {e}", file_path=str(path)) from e
        except yaml.YAMLError as e:
            raise TrackLoadError(f"Malformed manifest: {e}", file_path=str(path)) from e

        tracks = self.parse(document, source=str(path))
        logger.info(f"Loaded {len(tracks)} tracks from {path}")
        return tracks

    def parse(self, document: Any, source: Optional[str] = None) -> List[TrackInput]:
        """
        Turn an already-decoded manifest document into tracks.

        Args:
            document: Mapping with a "tracks" list
            source: Origin used in error messages

        Returns:
            Tracks in document order
        """
        if not isinstance(document, Mapping):
            raise TrackLoadError("Manifest must be a mapping with a 'tracks' list", file_path=source)

        entries = document.get("tracks")
        if not isinstance(entries, list) or not entries:
            raise TrackLoadError("Manifest has no 'tracks' list", file_path=source)

        default_genre = _optional_str(document.get("genre"))
        default_stage = _optional_str(document.get("stage"))

        tracks = []
        for position, entry in enumerate(entries, start=1):
            tracks.append(
                self._parse_entry(entry, position, default_genre, default_stage, source)
            )
        return tracks

    def _parse_entry(
        self,
        entry: Any,
        position: int,
        default_genre: Optional[str],
        default_stage: Optional[str],
        source: Optional[str],
    ) -> TrackInput:
        if not isinstance(entry, Mapping):
            raise TrackLoadError(f"Track #{position} must be a mapping", file_path=source)

        name = _optional_str(entry.get("name")) or f"Track {position}"
        raw_features = entry.get("features")
        if not isinstance(raw_features, Mapping):
            raise TrackLoadError(
                f"Track '{name}' has no 'features' mapping", file_path=source
            )

        try:
            features = FeatureVector.from_dict(raw_features)
            if self.validate:
                features.validate()
        except InvalidFeatureVectorError as e:
            raise InvalidFeatureVectorError(
                f"Track '{name}': {e.message}", field_name=e.field_name, value=e.value
            ) from e

        return TrackInput(
            name=name,
            features=features,
            genre=_optional_str(entry.get("genre")) or default_genre,
            stage=_optional_str(entry.get("stage")) or default_stage,
        )

    def _validate_file(self, path: Path) -> None:
        """Check suffix, existence and size."""
        suffix = path.suffix.lower()
        if suffix not in SUPPORTED_FORMATS:
            raise UnsupportedFormatError(
                f"Format {suffix or '(none)'} not supported. "
                f"Supported formats: {', '.join(sorted(SUPPORTED_FORMATS))}",
                format=suffix,
            )

        if not path.is_file():
            raise TrackLoadError(f"Manifest not found: {path}", file_path=str(path))

        file_size = path.stat().st_size
        if file_size > self.max_file_size:
            raise TrackLoadError(
                f"Manifest too large: {file_size / 1024 / 1024:.1f} MB. "
                f"Maximum: {self.max_file_size / 1024 / 1024:.1f} MB",
                file_path=str(path),
            )


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def create_track_loader(config: Optional[Dict[str, Any]] = None) -> TrackLoader:
    """
    Factory function to create a TrackLoader with configuration.

    Args:
        config: Optional "loader" config section

    Returns:
        TrackLoader: Configured loader
    """
    if config is None:
        config = {}

    return TrackLoader(
        max_file_size=config.get("max_file_size", MAX_FILE_SIZE),
        validate=config.get("validate", True),
    )
