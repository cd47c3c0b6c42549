"""Pure helpers for turning analyzer output into domain values."""

from retrocast.features.analysis.models import (
    AdMetadata,
    AnalysisResult,
    GeminiAdAnalysis,
    GeminiVideoAnalysis,
    SceneBreak,
)
from retrocast.features.matching.models import BreakPoint
from retrocast.platform.logging_config import get_logger

logger = get_logger(__name__)


def parse_timestamp(value: str) -> float | None:
    """Parse ``"SS"``, ``"M:SS"`` or ``"H:MM:SS"`` into seconds.

    Returns None for anything unparseable or negative.
    """
    if value is None:
        return None
    parts = str(value).strip().split(":")
    if len(parts) > 3:
        return None
    try:
        numbers = [float(p) for p in parts]
    except ValueError:
        return None

    seconds = 0.0
    for number in numbers:
        seconds = seconds * 60 + number
    return seconds if seconds >= 0 else None


def _clamp_scale(value: int) -> int:
    return min(max(int(value), 1), 10)


def to_analysis_result(raw: GeminiVideoAnalysis) -> AnalysisResult:
    """Convert the model response to seconds and sort break points by priority.

    Insertion points with unparseable timestamps are dropped.
    """
    scenes = []
    for scene in raw.scene_breaks:
        start = parse_timestamp(scene.start_time)
        end = parse_timestamp(scene.end_time)
        if start is None or end is None:
            logger.warning("scene_break_skipped", start=scene.start_time, end=scene.end_time)
            continue
        scenes.append(SceneBreak(
            start_seconds=start, end_seconds=end, description=scene.description
        ))

    break_points = []
    for point in raw.ad_insertion_points:
        seconds = parse_timestamp(point.timestamp)
        if seconds is None:
            logger.warning("insertion_point_skipped", timestamp=point.timestamp)
            continue
        break_points.append(BreakPoint(
            timestamp_seconds=seconds,
            priority=_clamp_scale(point.priority),
            reason=point.reason,
            suggested_categories=tuple(c.lower() for c in point.suggested_categories),
        ))
    break_points.sort(key=lambda bp: bp.priority, reverse=True)

    return AnalysisResult(
        scene_breaks=scenes,
        break_points=break_points,
        summary=raw.video_summary,
        categories=sorted({c.strip().lower() for c in raw.categories if c.strip()}),
        sentiment=raw.sentiment.lower() if raw.sentiment else None,
    )


def format_insertion_points(break_points: list[BreakPoint]) -> str:
    """Human-readable summary stored on the result entity."""
    return "; ".join(
        f"{bp.timestamp_seconds:.1f}s (priority {bp.priority}): {bp.reason}"
        for bp in break_points
    )


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def to_ad_metadata(raw: GeminiAdAnalysis) -> AdMetadata:
    """Normalise the ad analysis: lower-case labels, energy clamped to 1-10."""
    tone = _blank_to_none(raw.tone)
    era = _blank_to_none(raw.era_style)
    return AdMetadata(
        categories=sorted({c.strip().lower() for c in raw.categories if c.strip()}),
        tone=tone.lower() if tone else None,
        era_style=era.lower() if era else None,
        energy_level=_clamp_scale(raw.energy_level),
        keywords=[k.strip() for k in raw.keywords if k.strip()],
        transcript=raw.transcript.strip(),
        brand_name=_blank_to_none(raw.brand_name),
    )
