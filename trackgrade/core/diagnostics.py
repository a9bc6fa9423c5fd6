"""
Diagnostic issue generation.

Threshold rules comparing a feature vector to its benchmark, emitted in a
fixed order: loudness, dynamics, frequency bands, stereo width, tempo,
duration. A stage filter then puts the findings in the context of where
the track is in the mixing/mastering workflow.
"""

from dataclasses import replace
from typing import Iterable, List

from trackgrade.core.models import (
    Benchmark,
    FeatureVector,
    Issue,
    ProductionStage,
    Score,
)

# Thresholds
QUIET_MARGIN_DB: float = 3.0
LOUD_MARGIN_DB: float = 2.0
DYNAMICS_MARGIN_DB: float = 2.0
CRITICAL_DYNAMIC_RANGE_DB: float = 4.0
WEAK_BASS: float = 0.5
EXCESSIVE_BASS: float = 0.9
DULL_BRILLIANCE: float = 0.5
NARROW_WIDTH: float = 0.4
OVER_WIDE: float = 0.95
TEMPO_MARGIN_BPM: float = 10.0
DURATION_MARGIN_SECONDS: float = 30.0

MASTERING_CATEGORIES = frozenset({"loudness", "mastering"})

EARLY_STAGE_NOTE = " (Note: Final loudness will be addressed in mastering)"
REVIEW_STAGE_NOTE = " (Will be addressed in mastering stage)"
UNKNOWN_STAGE_NOTE = " (If not yet mastered, this will be addressed in that stage)"


def diagnose(features: FeatureVector, benchmark: Benchmark) -> List[Issue]:
    """
    Compare a track to its benchmark and list what needs attention.

    Deterministic: the same inputs always give the same issues in the
    same order.

    Args:
        features: Validated feature vector
        benchmark: Benchmark used for scoring

    Returns:
        List of Issue, unfiltered by stage
    """
    issues: List[Issue] = []
    issues.extend(_check_loudness(features, benchmark))
    issues.extend(_check_dynamics(features, benchmark))
    issues.extend(_check_frequency_balance(features))
    issues.extend(_check_stereo_width(features, benchmark))
    issues.extend(_check_tempo(features, benchmark))
    issues.extend(_check_duration(features, benchmark))
    return issues


def _check_loudness(features: FeatureVector, benchmark: Benchmark) -> List[Issue]:
    low, high = benchmark.loudness_db
    current = f"{features.loudness_db:.1f} LUFS"
    target = f"{_fmt(low)} to {_fmt(high)} LUFS"

    if features.loudness_db < low - QUIET_MARGIN_DB:
        return [Issue(
            category="loudness",
            severity="critical",
            title="Mix is Too Quiet",
            description=(
                "Your mix is significantly quieter than commercial "
                "standards for this genre."
            ),
            current_value=current,
            target_value=target,
            recommendations=(
                "Increase overall gain during mastering",
                "Use a limiter to increase perceived loudness",
                "Check if individual tracks are sitting too low in the mix",
                "Consider parallel compression to add density",
            ),
            technical_details=(
                "LUFS (Loudness Units Full Scale) measures perceived loudness. "
                "Streaming platforms normalize to around -14 LUFS, but a mix "
                "should be competitive before normalization."
            ),
        )]

    if features.loudness_db > high + LOUD_MARGIN_DB:
        return [Issue(
            category="loudness",
            severity="warning",
            title="Mix May Be Over-Compressed",
            description=(
                "Your mix is very loud, which might indicate over-compression "
                "and loss of dynamics."
            ),
            current_value=current,
            target_value=target,
            recommendations=(
                "Reduce limiter threshold/gain",
                "Allow more dynamic range in the mix",
                "Check for excessive compression on the master bus",
                "Trust streaming platform normalization - you don't need to be the loudest",
            ),
            technical_details=(
                "Excessive loudness often costs punch and dynamics, and "
                "streaming services turn loud masters down anyway."
            ),
        )]

    return []


def _check_dynamics(features: FeatureVector, benchmark: Benchmark) -> List[Issue]:
    dynamic_range = features.dynamic_range_db
    low, high = benchmark.dynamic_range_db
    if dynamic_range is None or dynamic_range >= low - DYNAMICS_MARGIN_DB:
        return []

    return [Issue(
        category="dynamics",
        severity="critical" if dynamic_range < CRITICAL_DYNAMIC_RANGE_DB else "warning",
        title="Limited Dynamic Range",
        description=(
            "Your mix lacks dynamic contrast, which can make it sound flat "
            "and fatiguing."
        ),
        current_value=f"{dynamic_range:.1f} dB",
        target_value=f"{_fmt(low)} to {_fmt(high)} dB",
        recommendations=(
            "Reduce compression on individual tracks",
            "Use less aggressive mastering limiting",
            "Preserve transients by using transient shapers carefully",
            "Allow choruses to be louder than verses for impact",
        ),
        technical_details=(
            "Dynamic range is the difference between the quietest and "
            "loudest parts. Too little makes mixes sound lifeless."
        ),
    )]


def _check_frequency_balance(features: FeatureVector) -> List[Issue]:
    balance = features.frequency_balance
    if balance is None:
        return []

    issues: List[Issue] = []

    if balance.bass < WEAK_BASS:
        issues.append(Issue(
            category="frequency_balance",
            severity="warning",
            title="Weak Low End",
            description=(
                "Bass frequencies are under-represented, which can make the "
                "mix sound thin."
            ),
            current_value="Below target",
            recommendations=(
                "Boost bass and sub-bass frequencies (60-250 Hz)",
                "Check if bass instruments are sitting properly in the mix",
                "Use EQ to add weight to kick and bass",
                "Consider layering bass elements for more presence",
            ),
        ))

    if balance.bass > EXCESSIVE_BASS:
        issues.append(Issue(
            category="frequency_balance",
            severity="warning",
            title="Excessive Low End",
            description=(
                "Too much bass can make the mix sound muddy and translate "
                "poorly on small speakers."
            ),
            current_value="Above target",
            recommendations=(
                "Use high-pass filters on non-bass elements",
                "Reduce low-mid buildup (200-400 Hz)",
                "Check bass and kick relationship - might be clashing",
                "Reference on multiple speaker systems",
            ),
        ))

    if balance.brilliance < DULL_BRILLIANCE:
        issues.append(Issue(
            category="frequency_balance",
            severity="suggestion",
            title="Lacking High-End Sparkle",
            description="High frequencies could use more presence for clarity and air.",
            current_value="Below target",
            recommendations=(
                "Add subtle high-shelf boost (8-12 kHz)",
                "Use saturation or harmonic exciters for highs",
                "Check if cymbals and vocals have enough top-end",
                "Consider de-essing before adding highs",
            ),
        ))

    return issues


def _check_stereo_width(features: FeatureVector, benchmark: Benchmark) -> List[Issue]:
    width = features.stereo_width
    if width is None:
        return []

    low, high = benchmark.stereo_width
    current = f"{width * 100:.0f}%"
    target = f"{low * 100:.0f}-{high * 100:.0f}%"

    if width < NARROW_WIDTH:
        return [Issue(
            category="stereo_imaging",
            severity="warning",
            title="Narrow Stereo Image",
            description="The mix sounds too centered and lacks width.",
            current_value=current,
            target_value=target,
            recommendations=(
                "Pan instruments across the stereo field",
                "Use stereo widening on appropriate tracks",
                "Double-track guitars/vocals and pan them",
                "Use stereo reverb and delay effects",
            ),
        )]

    if width > OVER_WIDE:
        return [Issue(
            category="stereo_imaging",
            severity="suggestion",
            title="Possibly Over-Widened",
            description="Extreme width can cause phase issues and a weak center.",
            current_value=current,
            target_value=target,
            recommendations=(
                "Keep bass and kick centered (mono below 150 Hz)",
                "Check mono compatibility",
                "Avoid excessive stereo widening plugins",
                "Ensure lead vocals are centered",
            ),
        )]

    return []


def _check_tempo(features: FeatureVector, benchmark: Benchmark) -> List[Issue]:
    low, high = benchmark.tempo_bpm
    if low - TEMPO_MARGIN_BPM <= features.tempo_bpm <= high + TEMPO_MARGIN_BPM:
        return []

    # A stylistic choice, never more than a suggestion
    return [Issue(
        category="tempo",
        severity="suggestion",
        title="Tempo Outside Genre Norm",
        description=(
            f"This tempo is unusual for {benchmark.genre}. This could be "
            "intentional, but be aware it may affect playlisting."
        ),
        current_value=f"{round(features.tempo_bpm)} BPM",
        target_value=f"{_fmt(low)}-{_fmt(high)} BPM typical",
        recommendations=(
            "Consider if tempo serves the song or hinders it",
            "If intentional, embrace it as a unique characteristic",
            "Test with target audience for feedback",
            "Pitch to curators who appreciate tempo experimentation",
        ),
    )]


def _check_duration(features: FeatureVector, benchmark: Benchmark) -> List[Issue]:
    low, high = benchmark.typical_duration_seconds
    duration = features.duration_seconds
    current = format_duration(duration)
    target = f"{format_duration(low)} - {format_duration(high)}"

    if duration > high + DURATION_MARGIN_SECONDS:
        return [Issue(
            category="structure",
            severity="suggestion",
            title="Song is Quite Long",
            description=(
                "Longer songs can have lower completion rates on streaming "
                "platforms."
            ),
            current_value=current,
            target_value=target,
            recommendations=(
                "Consider editing for a tighter arrangement",
                "Ensure every section serves the song",
                "Check if intro/outro can be shortened",
                "Long songs work if they maintain engagement throughout",
            ),
        )]

    if duration < low - DURATION_MARGIN_SECONDS:
        return [Issue(
            category="structure",
            severity="suggestion",
            title="Song is Quite Short",
            description=(
                "Very short songs might not allow enough time for listener "
                "engagement."
            ),
            current_value=current,
            target_value=target,
            recommendations=(
                "Consider if the song feels complete",
                "Short songs can work great if intentional",
                "Ensure you have enough material for a satisfying listen",
                "A short, TikTok-friendly format can be strategic",
            ),
        )]

    return []


def filter_issues_for_stage(
    issues: Iterable[Issue],
    stage: ProductionStage,
) -> List[Issue]:
    """
    Put issues in the context of the declared production stage.

    Early stages (rough mix, mixing) downgrade non-critical loudness
    issues to suggestions since loudness is a mastering job. Review and
    pre-master stages only annotate loudness issues. An unknown stage
    annotates every mastering-related issue. Critical issues are never
    downgraded and nothing is removed.

    Args:
        issues: Issues from :func:`diagnose`
        stage: Declared production stage

    Returns:
        New list of issues, same order and length
    """
    filtered: List[Issue] = []

    for issue in issues:
        if stage in (ProductionStage.ROUGH_MIX, ProductionStage.MIXING):
            if issue.category == "loudness" and issue.severity != "critical":
                issue = replace(
                    issue,
                    severity="suggestion",
                    description=issue.description + EARLY_STAGE_NOTE,
                )
        elif stage in (ProductionStage.MIX_REVIEW, ProductionStage.PRE_MASTER):
            if issue.category == "loudness":
                issue = replace(issue, description=issue.description + REVIEW_STAGE_NOTE)
        elif stage is ProductionStage.UNKNOWN:
            if issue.category in MASTERING_CATEGORIES:
                issue = replace(issue, description=issue.description + UNKNOWN_STAGE_NOTE)

        filtered.append(issue)

    return filtered


def stage_tips(
    stage: ProductionStage,
    issues: Iterable[Issue],
    score: Score,
) -> List[str]:
    """
    Workflow tips for the declared production stage.

    Args:
        stage: Declared production stage
        issues: Stage-filtered issues
        score: Track score

    Returns:
        Ordered list of tip strings
    """
    categories = {issue.category for issue in issues}
    tips: List[str] = []

    if stage is ProductionStage.ROUGH_MIX:
        tips.extend([
            "Focus on getting a balanced level for all tracks first",
            "Set rough panning positions to create space",
            "Use high-pass filters to clean up low-end mud",
            "Don't worry about perfection yet - rough balance is the goal",
        ])
        if "loudness" in categories:
            tips.append(
                "Loudness will be addressed in mastering - focus on balance "
                "and clarity for now"
            )

    elif stage is ProductionStage.MIXING:
        tips.extend([
            "Now is the time for EQ, compression, and creative effects",
            "Check your mix at different volumes to ensure translation",
            "Use automation to bring out important elements",
            "Add depth with reverb and delay, but don't overdo it",
        ])
        if "frequency_balance" in categories:
            tips.append(
                "Address frequency issues now - they'll be harder to fix in mastering"
            )

    elif stage is ProductionStage.MIX_REVIEW:
        tips.extend([
            "Listen on multiple systems: headphones, car, phone, studio monitors",
            "Take a 24-hour break and return with fresh ears",
            "Compare against reference tracks at matched volumes",
            "Make final tweaks but avoid over-analyzing",
            "Save multiple versions before moving to mastering",
        ])

    elif stage is ProductionStage.PRE_MASTER:
        tips.extend([
            "Ensure your mix has appropriate headroom (-6 to -3 dBFS peak)",
            "Check for any clicks, pops, or digital artifacts",
            "Verify fade-ins/fade-outs are clean",
            "Document any specific mastering requests",
        ])
        if score.breakdown.dynamics < 0.7:
            tips.append(
                "Your mix may be over-compressed - consider backing off before mastering"
            )

    elif stage is ProductionStage.MASTERED:
        tips.extend([
            "Verify the master translates well across all playback systems",
            "Check loudness against streaming platform targets (-14 LUFS for most)",
            "Ensure no clipping or distortion was introduced",
            "Keep your pre-master mix file in case revisions are needed",
        ])

    else:
        tips.extend([
            "Identify your current stage to get more specific recommendations",
            "If you're still adjusting levels and EQ, you're likely in the mixing stage",
            "If you're happy with the mix and want it louder, you're ready for mastering",
        ])

    return tips


def format_duration(seconds: float) -> str:
    """Format seconds as M:SS."""
    whole = int(seconds)
    return f"{whole // 60}:{whole % 60:02d}"


def _fmt(value: float) -> str:
    """Drop a trailing .0 so targets read "-6 to -4"."""
    return f"{value:g}"
