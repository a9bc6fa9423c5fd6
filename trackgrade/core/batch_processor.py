"""
Batch processor for analyzing a catalog of tracks.

Fans TrackAnalyzer calls out over a thread pool, waits for every track,
and hands results back in input order. A failing track is recorded and
the rest of the batch carries on.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from trackgrade.core.analyzer import TrackAnalyzer
from trackgrade.core.models import TrackAnalysis, TrackInput
from trackgrade.utils.errors import AnalysisError


@dataclass
class BatchResult:
    """Result of a batch run, one slot per input track."""
    results: List[Optional[TrackAnalysis]] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    total_tracks: int = 0
    total_time: float = 0.0

    @property
    def analyses(self) -> List[TrackAnalysis]:
        """Successful analyses in input order."""
        return [analysis for analysis in self.results if analysis is not None]

    @property
    def success_count(self) -> int:
        return len(self.analyses)

    @property
    def failure_count(self) -> int:
        return self.total_tracks - self.success_count

    @property
    def success_rate(self) -> float:
        """Success rate as percentage."""
        if self.total_tracks == 0:
            return 0.0
        return (self.success_count / self.total_tracks) * 100


class BatchProcessor:
    """
    Runs many analyses concurrently against one shared analyzer.

    Use as a context manager so the worker pool is shut down:

        with BatchProcessor(analyzer, max_workers=4) as processor:
            result = processor.process(tracks)
    """

    def __init__(
        self,
        analyzer: TrackAnalyzer,
        max_workers: int = 4,
        progress_callback: Optional[Callable[[int, int, str], None]] = None,
    ):
        """
        Initialize batch processor.

        Args:
            analyzer: TrackAnalyzer instance (dependency injection)
            max_workers: Maximum parallel workers
            progress_callback: Optional callback(done, total, track_name)
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")

        self.analyzer = analyzer
        self.max_workers = max_workers
        self.progress_callback = progress_callback
        self.executor = ThreadPoolExecutor(max_workers=max_workers)
        self.logger = logging.getLogger("batch_processor")
        self._progress_lock = threading.Lock()

    def process(self, tracks: Sequence[TrackInput]) -> BatchResult:
        """
        Analyze every track and wait for all of them.

        Args:
            tracks: Tracks in catalog order

        Returns:
            BatchResult whose ``analyses`` keep the input order
        """
        start_time = time.time()
        total = len(tracks)
        result = BatchResult(results=[None] * total, total_tracks=total)

        if not tracks:
            self.logger.warning("No tracks to process")
            return result

        self.logger.info(f"Processing {total} tracks with {self.max_workers} workers")

        futures = {
            self.executor.submit(self._analyze_one, track): index
            for index, track in enumerate(tracks)
        }

        done = 0
        for future in as_completed(futures):
            index = futures[future]
            track = tracks[index]
            try:
                result.results[index] = future.result()
                self.logger.debug(f"Processed: {track.name}")
            except AnalysisError as e:
                result.failed[track.name] = e.message
                self.logger.error(f"Failed to analyze {track.name}: {e.message}")

            done += 1
            self._report_progress(done, total, track.name)

        result.total_time = time.time() - start_time
        self.logger.info(
            f"Batch complete: {result.success_count}/{result.total_tracks} succeeded "
            f"in {result.total_time:.2f}s"
        )
        return result

    def _analyze_one(self, track: TrackInput) -> TrackAnalysis:
        try:
            return self.analyzer.analyze(
                track.features,
                genre=track.genre,
                stage=track.stage,
                track_name=track.name,
            )
        except Exception as e:
            raise AnalysisError(str(e), track_name=track.name, original_error=e) from e

    def _report_progress(self, done: int, total: int, name: str) -> None:
        if self.progress_callback is None:
            return
        with self._progress_lock:
            self.progress_callback(done, total, name)

    def shutdown(self) -> None:
        """Shutdown thread pool gracefully."""
        self.logger.debug("Shutting down batch processor")
        self.executor.shutdown(wait=True)

    def __enter__(self) -> "BatchProcessor":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()


def create_batch_processor(
    analyzer: TrackAnalyzer,
    config: Optional[Dict] = None,
    progress_callback: Optional[Callable[[int, int, str], None]] = None,
) -> BatchProcessor:
    """
    Factory function to create a BatchProcessor from configuration.

    Args:
        analyzer: Shared TrackAnalyzer
        config: Full configuration dict (uses performance.max_workers)
        progress_callback: Optional progress callback

    Returns:
        BatchProcessor: Configured processor
    """
    if config is None:
        config = {}

    max_workers = config.get("performance", {}).get("max_workers", 4)
    return BatchProcessor(
        analyzer,
        max_workers=max_workers,
        progress_callback=progress_callback,
    )
