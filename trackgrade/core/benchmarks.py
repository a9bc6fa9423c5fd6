"""
Genre benchmark catalog.

A read-only table of target ranges per genre, built once at start-up and
handed to the scorer and analyzer. Free-text genre labels that do not
resolve fall back to the default benchmark.
"""

import logging
import re
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from trackgrade.core.models import BENCHMARK_RANGE_FIELDS, Benchmark
from trackgrade.utils.errors import ConfigurationError

DEFAULT_GENRE: str = "Pop"

logger = logging.getLogger("benchmarks")


BUILTIN_BENCHMARKS: Tuple[Benchmark, ...] = (
    Benchmark(
        genre="R&B",
        tempo_bpm=(70, 110),
        danceability=(0.4, 0.8),
        energy=(0.3, 0.7),
        valence=(0.2, 0.7),
        loudness_db=(-8, -5),
        dynamic_range_db=(6, 10),
        stereo_width=(0.6, 0.9),
        typical_intro_seconds=(5, 15),
        typical_duration_seconds=(180, 240),
        reference_tracks=(
            "SZA - Good Days",
            "H.E.R. - Focus",
            "Summer Walker - Playing Games",
        ),
    ),
    Benchmark(
        genre="Pop",
        tempo_bpm=(90, 130),
        danceability=(0.5, 0.9),
        energy=(0.5, 0.9),
        valence=(0.4, 0.8),
        loudness_db=(-6, -4),
        dynamic_range_db=(5, 9),
        stereo_width=(0.7, 0.95),
        typical_intro_seconds=(3, 10),
        typical_duration_seconds=(165, 210),
        reference_tracks=(
            "Dua Lipa - Levitating",
            "The Weeknd - Blinding Lights",
            "Doja Cat - Kiss Me More",
        ),
    ),
    Benchmark(
        genre="Hip Hop",
        tempo_bpm=(70, 140),
        danceability=(0.6, 0.9),
        energy=(0.6, 0.9),
        valence=(0.3, 0.8),
        loudness_db=(-7, -4),
        dynamic_range_db=(4, 8),
        stereo_width=(0.5, 0.8),
        typical_intro_seconds=(0, 8),
        typical_duration_seconds=(150, 210),
        reference_tracks=(
            "Drake - God's Plan",
            "Kendrick Lamar - HUMBLE.",
            "Travis Scott - SICKO MODE",
        ),
    ),
    Benchmark(
        genre="Electronic",
        tempo_bpm=(100, 150),
        danceability=(0.7, 0.95),
        energy=(0.7, 0.95),
        valence=(0.4, 0.9),
        loudness_db=(-6, -3),
        dynamic_range_db=(4, 8),
        stereo_width=(0.8, 1.0),
        typical_intro_seconds=(8, 30),
        typical_duration_seconds=(180, 300),
        reference_tracks=(
            "Disclosure - Latch",
            "ODESZA - Say My Name",
            "Flume - Never Be Like You",
        ),
    ),
    Benchmark(
        genre="Alternative",
        tempo_bpm=(80, 120),
        danceability=(0.3, 0.7),
        energy=(0.4, 0.8),
        valence=(0.2, 0.7),
        loudness_db=(-9, -6),
        dynamic_range_db=(7, 12),
        stereo_width=(0.6, 0.9),
        typical_intro_seconds=(5, 20),
        typical_duration_seconds=(180, 270),
        reference_tracks=(
            "Phoebe Bridgers - Kyoto",
            "Tame Impala - The Less I Know The Better",
            "Glass Animals - Heat Waves",
        ),
    ),
)


def normalize_genre_label(label: str) -> str:
    """Lower-case a label and drop everything but letters, digits and '&'."""
    return re.sub(r"[^a-z0-9&]", "", label.lower())


class BenchmarkCatalog:
    """
    Immutable genre -> Benchmark lookup.

    Resolution order for a label: exact genre name, then a case- and
    punctuation-insensitive match ("hip-hop" finds "Hip Hop"), then the
    default genre. Lookups never raise.
    """

    def __init__(
        self,
        benchmarks: Iterable[Benchmark] = BUILTIN_BENCHMARKS,
        default_genre: str = DEFAULT_GENRE,
    ):
        """
        Args:
            benchmarks: One Benchmark per supported genre
            default_genre: Genre used for unresolved labels; must be present

        Raises:
            ConfigurationError: If the default genre has no benchmark
        """
        table = {benchmark.genre: benchmark for benchmark in benchmarks}
        if default_genre not in table:
            raise ConfigurationError(
                f"Default genre '{default_genre}' has no benchmark",
                config_key="analysis.default_genre",
            )
        self._benchmarks: Mapping[str, Benchmark] = MappingProxyType(table)
        self._normalized: Mapping[str, str] = MappingProxyType({
            normalize_genre_label(genre): genre for genre in table
        })
        self._default_genre = default_genre

    @property
    def default_genre(self) -> str:
        return self._default_genre

    @property
    def default(self) -> Benchmark:
        return self._benchmarks[self._default_genre]

    def genres(self) -> Tuple[str, ...]:
        """Supported genre names in registration order."""
        return tuple(self._benchmarks)

    def resolve(self, label: Optional[str]) -> Optional[str]:
        """Return the catalog genre a label refers to, or None."""
        if not label:
            return None
        if label in self._benchmarks:
            return label
        return self._normalized.get(normalize_genre_label(label))

    def is_known(self, label: Optional[str]) -> bool:
        return self.resolve(label) is not None

    def get(self, label: Optional[str]) -> Benchmark:
        """
        Look up the benchmark for a free-text genre label.

        Args:
            label: Genre label as given by the artist, may be None

        Returns:
            The matching Benchmark, or the default one
        """
        genre = self.resolve(label)
        if genre is None:
            if label:
                logger.debug(
                    f"Unknown genre '{label}', using {self._default_genre} benchmark"
                )
            return self.default
        return self._benchmarks[genre]

    def with_overrides(self, overrides: Mapping[str, Mapping[str, Any]]) -> "BenchmarkCatalog":
        """
        Build a new catalog with some genres patched or added.

        Args:
            overrides: Genre name -> field overrides. Existing genres may
                       override any subset of ranges; new genres must give
                       every range.

        Returns:
            A new BenchmarkCatalog; this one is left untouched

        Raises:
            ConfigurationError: For unknown fields or incomplete new genres
        """
        table: Dict[str, Benchmark] = dict(self._benchmarks)

        for genre, patch in overrides.items():
            if not isinstance(patch, Mapping):
                raise ConfigurationError(
                    f"Benchmark override for '{genre}' must be a mapping",
                    config_key=f"benchmarks.{genre}",
                )
            try:
                existing = table.get(self.resolve(genre) or genre)
                if existing is not None:
                    table[existing.genre] = existing.with_overrides(patch)
                else:
                    table[genre] = _new_benchmark(genre, patch)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid benchmark override for '{genre}': {e}",
                    config_key=f"benchmarks.{genre}",
                ) from e
            logger.info(f"Benchmark override applied: {genre}")

        return BenchmarkCatalog(table.values(), default_genre=self._default_genre)

    def __contains__(self, label: str) -> bool:
        return self.is_known(label)

    def __len__(self) -> int:
        return len(self._benchmarks)


def _new_benchmark(genre: str, patch: Mapping[str, Any]) -> Benchmark:
    missing = [name for name in BENCHMARK_RANGE_FIELDS if name not in patch]
    if missing:
        raise ValueError(f"new genre is missing ranges: {', '.join(missing)}")

    # Seed from any built-in, then let with_overrides coerce every field
    seed = BUILTIN_BENCHMARKS[0]
    return seed.with_overrides({"reference_tracks": (), **patch, "genre": genre})


def create_benchmark_catalog(config: Optional[Dict[str, Any]] = None) -> BenchmarkCatalog:
    """
    Factory function to build the process-wide catalog from configuration.

    Args:
        config: Full configuration dict (uses "benchmarks" and
                "analysis.default_genre")

    Returns:
        BenchmarkCatalog: Built-ins plus any configured overrides
    """
    if config is None:
        config = {}

    default_genre = config.get("analysis", {}).get("default_genre", DEFAULT_GENRE)
    catalog = BenchmarkCatalog(BUILTIN_BENCHMARKS)
    overrides = config.get("benchmarks") or {}
    if overrides:
        catalog = catalog.with_overrides(overrides)

    if default_genre != catalog.default_genre:
        resolved = catalog.resolve(default_genre) or default_genre
        catalog = BenchmarkCatalog(
            (catalog.get(genre) for genre in catalog.genres()),
            default_genre=resolved,
        )
    return catalog
