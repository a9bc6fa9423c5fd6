"""
Result writers for analyses and catalog reports.

Each writer renders to a string and can write that string to a file;
the CLI prints the rendering when no output path is given.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, TextIO, Union

from trackgrade.catalog.models import CatalogReport
from trackgrade.core.diagnostics import format_duration
from trackgrade.core.models import MetricComparison, TrackAnalysis
from trackgrade.core.scorer import compare_metric

RULE = "=" * 70
THIN_RULE = "-" * 70

STATUS_LABELS = {
    "excellent": "excellent",
    "good": "good",
    "fair": "fair",
    "needs_work": "needs work",
}


class ResultWriter(ABC):
    """Abstract base class for result writers."""

    def __init__(self):
        self.logger = logging.getLogger("result_writer")

    @abstractmethod
    def render(
        self,
        analyses: Sequence[TrackAnalysis],
        report: Optional[CatalogReport] = None,
    ) -> str:
        """Render analyses, and optionally a catalog report, to a string."""

    def write(
        self,
        analyses: Sequence[TrackAnalysis],
        output: Union[str, Path, TextIO],
        report: Optional[CatalogReport] = None,
    ) -> None:
        """
        Write the rendering to a file path or an open text stream.

        Args:
            analyses: Track analyses in catalog order
            output: Destination path or stream
            report: Optional catalog report appended after the tracks
        """
        text = self.render(analyses, report)

        if isinstance(output, (str, Path)):
            output_path = Path(output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "w", encoding="utf-8") as f:
                f.write(text)
            self.logger.info(f"Results written to: {output_path}")
        else:
            output.write(text)


class TextResultWriter(ResultWriter):
    """Human-readable report."""

    def __init__(self, include_timestamp: bool = True, show_recommendations: bool = True):
        """
        Args:
            include_timestamp: Whether to include generation time in the header
            show_recommendations: Whether to list per-issue recommendations
        """
        super().__init__()
        self.include_timestamp = include_timestamp
        self.show_recommendations = show_recommendations

    def render(
        self,
        analyses: Sequence[TrackAnalysis],
        report: Optional[CatalogReport] = None,
    ) -> str:
        lines: List[str] = [RULE, "TRACKGRADE ANALYSIS RESULTS", RULE]
        if self.include_timestamp:
            lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append(f"Tracks Analyzed: {len(analyses)}")
        lines.append(RULE)
        lines.append("")

        for analysis in analyses:
            lines.extend(self._render_analysis(analysis))

        if report is not None:
            lines.extend(self._render_report(report))

        lines.extend([RULE, "END OF REPORT", RULE])
        return "\n".join(lines) + "\n"

    def _render_analysis(self, analysis: TrackAnalysis) -> List[str]:
        features = analysis.features
        benchmark = analysis.benchmark
        breakdown = analysis.score.breakdown

        lines = [
            THIN_RULE,
            f"TRACK: {analysis.track_name}",
            f"Genre: {analysis.genre}"
            + (
                f" (requested '{analysis.requested_genre}')"
                if analysis.requested_genre and analysis.requested_genre != analysis.genre
                else ""
            ),
            f"Stage: {analysis.stage.value}",
            THIN_RULE,
            f"Score: {analysis.score.overall}/100",
            f"  Loudness:             {breakdown.loudness:.0%}",
            f"  Dynamics:             {breakdown.dynamics:.0%}",
            f"  Frequency Balance:    {breakdown.frequency_balance:.0%}",
            f"  Stereo Imaging:       {breakdown.stereo_imaging:.0%}",
            f"  Genre Alignment:      {breakdown.genre_alignment:.0%}",
            f"  Commercial Readiness: {breakdown.commercial_readiness:.0%}",
            "",
            "Against Benchmark:",
        ]

        comparisons = [
            compare_metric(features.loudness_db, benchmark.loudness_db, "Loudness (LUFS)"),
            compare_metric(features.tempo_bpm, benchmark.tempo_bpm, "Tempo (BPM)"),
            compare_metric(features.energy, benchmark.energy, "Energy"),
            compare_metric(features.danceability, benchmark.danceability, "Danceability"),
            compare_metric(
                features.duration_seconds, benchmark.typical_duration_seconds, "Duration (s)"
            ),
        ]
        if features.dynamic_range_db is not None:
            comparisons.append(compare_metric(
                features.dynamic_range_db, benchmark.dynamic_range_db, "Dynamic Range (dB)"
            ))
        if features.stereo_width is not None:
            comparisons.append(compare_metric(
                features.stereo_width, benchmark.stereo_width, "Stereo Width"
            ))
        lines.extend(_format_comparison(comparison) for comparison in comparisons)
        lines.append(f"  Length: {format_duration(features.duration_seconds)}")

        lines.append("")
        lines.append(f"Assessment: {analysis.overall_assessment}")

        if analysis.strengths:
            lines.append("")
            lines.append("Strengths:")
            lines.extend(f"  + {strength}" for strength in analysis.strengths)

        if analysis.issues:
            lines.append("")
            lines.append("Issues:")
            for issue in analysis.issues:
                lines.append(f"  [{issue.severity.upper()}] {issue.title}")
                lines.append(f"    {issue.description}")
                target = f" (target {issue.target_value})" if issue.target_value else ""
                lines.append(f"    Current: {issue.current_value}{target}")
                if self.show_recommendations:
                    lines.extend(f"    - {rec}" for rec in issue.recommendations)

        if analysis.next_steps:
            lines.append("")
            lines.append("Next Steps:")
            lines.extend(
                f"  {number}. {step}" for number, step in enumerate(analysis.next_steps, start=1)
            )

        if analysis.stage_tips:
            lines.append("")
            lines.append(f"Tips for the {analysis.stage.value} stage:")
            lines.extend(f"  * {tip}" for tip in analysis.stage_tips)

        if analysis.reference_tracks:
            lines.append("")
            lines.append(f"Reference Tracks: {', '.join(analysis.reference_tracks)}")

        lines.append("")
        return lines

    def _render_report(self, report: CatalogReport) -> List[str]:
        progression = report.quality_progression
        genre = report.genre_consistency
        sonic = report.sonic_identity
        low, high = progression.score_range

        lines = [
            RULE,
            "CATALOG REPORT",
            RULE,
            f"Tracks: {report.total_tracks}",
            f"Average Score: {report.average_score}/100 ({low}-{high})",
            f"Score Trend: {report.score_trend}",
            f"Best Track: {progression.best_track}",
            f"Weakest Track: {progression.weakest_track}",
            "",
            f"Genre: {genre.primary_genre} ({genre.consistency_score}% consistent)",
            "  " + ", ".join(f"{name} {share}%" for name, share in genre.genre_distribution),
            f"  {genre.recommendation}",
            "",
            f"Sonic Identity: {sonic.consistency_score}/100",
            f"  Tempo {sonic.tempo_range[0]}-{sonic.tempo_range[1]} BPM, "
            f"energy {sonic.energy_range[0]:.0%}-{sonic.energy_range[1]:.0%}",
            f"  Traits: {', '.join(sonic.common_traits)}",
        ]
        if sonic.outlier_tracks:
            lines.append(f"  Outliers: {', '.join(sonic.outlier_tracks)}")
        lines.append(f"  {sonic.recommendation}")

        if report.trends:
            lines.append("")
            lines.append("Trends:")
            lines.extend(
                f"  {trend.metric}: {trend.direction} ({trend.change_percentage:.1f}%) - "
                f"{trend.description}"
                for trend in report.trends
            )

        if report.insights:
            lines.append("")
            lines.append("Insights:")
            for insight in report.insights:
                lines.append(f"  [{insight.type}] {insight.title}: {insight.description}")
                if insight.tracks_affected:
                    lines.append(f"    Tracks: {', '.join(insight.tracks_affected)}")

        lines.append("")
        lines.append("Needs Improvement:")
        for track in report.needs_improvement:
            notes = f" - {', '.join(track.notes)}" if track.notes else ""
            lines.append(f"  {track.name} ({track.score}/100){notes}")

        if report.overall_recommendations:
            lines.append("")
            lines.append("Recommendations:")
            lines.extend(f"  - {rec}" for rec in report.overall_recommendations)

        lines.append("")
        lines.append("Next Release:")
        lines.extend(f"  - {line}" for line in report.next_release_guidance)

        lines.append("")
        lines.append("Timeline:")
        for point in report.timeline:
            lines.append(
                f"  {point.track_number:>3}. {point.track_name:<20} {point.overall_score:>3}"
            )
        lines.append("")
        return lines


class JSONResultWriter(ResultWriter):
    """Machine-readable report."""

    def __init__(self, indent: int = 2):
        """
        Args:
            indent: JSON indentation level
        """
        super().__init__()
        self.indent = indent

    def render(
        self,
        analyses: Sequence[TrackAnalysis],
        report: Optional[CatalogReport] = None,
    ) -> str:
        output_data = {
            "generated": datetime.now().isoformat(),
            "total_tracks": len(analyses),
            "tracks": [analysis.to_dict() for analysis in analyses],
        }
        if report is not None:
            output_data["catalog"] = report.to_dict()

        return json.dumps(output_data, indent=self.indent, default=str) + "\n"


def _format_comparison(comparison: MetricComparison) -> str:
    low, high = comparison.benchmark_range
    return (
        f"  {comparison.metric:<20} {comparison.value:>8.2f}  "
        f"target {low:g} to {high:g}  [{STATUS_LABELS[comparison.status]}]"
    )


def create_result_writer(format: str = "text", **kwargs) -> ResultWriter:
    """
    Factory function to create appropriate result writer.

    Args:
        format: Output format ("text" or "json")
        **kwargs: Additional arguments for the writer

    Returns:
        Appropriate ResultWriter instance
    """
    writers = {
        "text": TextResultWriter,
        "txt": TextResultWriter,
        "json": JSONResultWriter,
    }

    writer_class = writers.get(format.lower())
    if writer_class is None:
        raise ValueError(f"Unknown format: {format}. Supported: {list(writers.keys())}")

    return writer_class(**kwargs)
