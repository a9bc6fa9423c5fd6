"""
trackgrade command line.

Example usage:
    trackgrade analyze tracks.yaml
    trackgrade analyze tracks.yaml --genre "Hip Hop" --stage mixing
    trackgrade catalog tracks.yaml --format json --output report.json
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from trackgrade import __version__
from trackgrade.catalog.aggregator import CatalogAggregator
from trackgrade.core.analyzer import create_track_analyzer
from trackgrade.core.batch_processor import create_batch_processor
from trackgrade.core.loader import create_track_loader
from trackgrade.core.models import ProductionStage, TrackInput
from trackgrade.core.result_writer import create_result_writer
from trackgrade.utils.config import load_config
from trackgrade.utils.errors import TrackGradeError
from trackgrade.utils.logging import setup_logging

logger = logging.getLogger("trackgrade")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trackgrade",
        description="Score mixes against genre benchmarks and analyze catalogs",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "manifest",
        type=Path,
        help="YAML or JSON file listing tracks and their features",
    )
    common.add_argument(
        "--genre",
        default=None,
        help="Genre for every track, overriding the manifest",
    )
    common.add_argument(
        "--stage",
        default=None,
        choices=[stage.value for stage in ProductionStage] + ["not-sure"],
        help="Production stage for every track, overriding the manifest",
    )
    common.add_argument(
        "--format",
        default="text",
        choices=["text", "json"],
        help="Output format",
    )
    common.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write results to this file instead of stdout",
    )
    common.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser(
        "analyze",
        parents=[common],
        help="Analyze each track on its own",
    )
    subparsers.add_parser(
        "catalog",
        parents=[common],
        help="Analyze each track, then the catalog as a whole",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(str(args.config) if args.config else None)
    except TrackGradeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logging_config = config.get("logging", {})
    setup_logging(
        level="DEBUG" if args.verbose else logging_config.get("level", "INFO"),
        log_format=logging_config.get("format", "text"),
        log_file=logging_config.get("file"),
        colored=sys.stderr.isatty(),
    )

    try:
        tracks = create_track_loader(config.get("loader", {})).load(args.manifest)
    except TrackGradeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    tracks = [_apply_overrides(track, args.genre, args.stage) for track in tracks]

    try:
        analyzer = create_track_analyzer(config)
    except TrackGradeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    with create_batch_processor(analyzer, config) as processor:
        result = processor.process(tracks)

    for name, error in result.failed.items():
        print(f"Error: {name}: {error}", file=sys.stderr)

    analyses = result.analyses
    if not analyses:
        return 1

    report = None
    if args.command == "catalog":
        report = CatalogAggregator().aggregate(analyses)

    writer = create_result_writer(args.format)
    writer.write(analyses, args.output if args.output else sys.stdout, report=report)

    return 1 if result.failed else 0


def _apply_overrides(
    track: TrackInput,
    genre: Optional[str],
    stage: Optional[str],
) -> TrackInput:
    if genre is None and stage is None:
        return track
    return TrackInput(
        name=track.name,
        features=track.features,
        genre=genre if genre is not None else track.genre,
        stage=stage if stage is not None else track.stage,
    )


if __name__ == "__main__":
    sys.exit(main())
