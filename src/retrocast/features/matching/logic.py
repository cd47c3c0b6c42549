"""Pure business logic for ad matching and scheduling.

All functions are pure (no I/O, no side-effects) so they can be
unit-tested without infrastructure.
"""

from types import MappingProxyType
from typing import Iterable, Sequence

from retrocast.features.matching.models import (
    AdCandidate,
    BreakPoint,
    MatchResult,
    ScheduleItem,
    VideoProfile,
)

CATEGORY_WEIGHT = 0.40
TONE_WEIGHT = 0.25
ERA_WEIGHT = 0.20
ENERGY_WEIGHT = 0.15

# Minimum gap between any two scheduled ads (seconds)
MIN_AD_SPACING = 120

NEUTRAL_SCORE = 0.5
DEFAULT_AD_DURATION = 30

TONE_COMPATIBILITY = MappingProxyType({
    "humorous": MappingProxyType({"positive": 1.0, "neutral": 0.7, "negative": 0.3, "mixed": 0.8}),
    "serious": MappingProxyType({"positive": 0.6, "neutral": 0.9, "negative": 0.8, "mixed": 0.7}),
    "nostalgic": MappingProxyType({"positive": 0.9, "neutral": 0.8, "negative": 0.5, "mixed": 0.8}),
    "exciting": MappingProxyType({"positive": 1.0, "neutral": 0.6, "negative": 0.4, "mixed": 0.7}),
    "calm": MappingProxyType({"positive": 0.8, "neutral": 1.0, "negative": 0.4, "mixed": 0.6}),
    "informative": MappingProxyType({"positive": 0.7, "neutral": 1.0, "negative": 0.6, "mixed": 0.8}),
})

# Retro eras score higher; the channel airs 80s/90s-style content
ERA_SCORES = MappingProxyType({
    "1950s": 1.0,
    "1960s": 1.0,
    "1970s": 1.0,
    "1980s": 1.0,
    "1990s": 0.9,
    "modern-retro": 0.8,
    "modern": 0.5,
})


def category_score(ad_categories: Iterable[str], video_categories: Iterable[str]) -> float:
    """Jaccard similarity of the two category sets; 0.0 if either is empty."""
    ad_set = set(ad_categories or ())
    video_set = set(video_categories or ())
    if not ad_set or not video_set:
        return 0.0
    return len(ad_set & video_set) / len(ad_set | video_set)


def tone_score(tone: str | None, sentiment: str | None) -> float:
    """Look up tone/sentiment compatibility, case-insensitive."""
    if not tone or not sentiment:
        return NEUTRAL_SCORE
    row = TONE_COMPATIBILITY.get(tone.lower())
    if row is None:
        return NEUTRAL_SCORE
    return row.get(sentiment.lower(), NEUTRAL_SCORE)


def era_score(era_style: str | None) -> float:
    if not era_style:
        return NEUTRAL_SCORE
    return ERA_SCORES.get(era_style.lower(), NEUTRAL_SCORE)


def energy_score(energy_level: int | None) -> float:
    """Normalise a 1-10 energy level to 0.0-1.0."""
    if energy_level is None:
        return NEUTRAL_SCORE
    return min(max(energy_level / 10.0, 0.0), 1.0)


def overall_score(category: float, tone: float, era: float, energy: float) -> float:
    return (
        category * CATEGORY_WEIGHT
        + tone * TONE_WEIGHT
        + era * ERA_WEIGHT
        + energy * ENERGY_WEIGHT
    )


def match_reason(
    matched_categories: Sequence[str],
    tone: str | None,
    era_style: str | None,
    score: float,
) -> str:
    """Build the human-readable explanation for a match.

    Example: ``"Category match: automotive; Tone: exciting; Era: 1980s (97% match)"``.
    """
    parts = []
    if matched_categories:
        parts.append("Category match: " + ", ".join(matched_categories))
    if tone:
        parts.append(f"Tone: {tone}")
    if era_style:
        parts.append(f"Era: {era_style}")

    reason = "; ".join(parts) if parts else "General match"
    # Halves round up: 0.125 reads as 13%
    percent = int(score * 100 + 0.5)
    return f"{reason} ({percent}% match)"


def score(ad: AdCandidate, video: VideoProfile) -> MatchResult:
    """Score one ad against the video's content profile."""
    cat = category_score(ad.categories, video.categories)
    tone = tone_score(ad.tone, video.sentiment)
    era = era_score(ad.era_style)
    energy = energy_score(ad.energy_level)
    total = overall_score(cat, tone, era, energy)

    matched = sorted(set(ad.categories) & set(video.categories))

    return MatchResult(
        ad_id=ad.id,
        overall_score=total,
        category_score=cat,
        tone_score=tone,
        era_score=era,
        energy_score=energy,
        matched_categories=matched,
        reason=match_reason(matched, ad.tone, ad.era_style, total),
        duration_seconds=(
            ad.duration_seconds if ad.duration_seconds is not None else DEFAULT_AD_DURATION
        ),
    )


def rank(ads: Sequence[AdCandidate], video: VideoProfile) -> list[MatchResult]:
    """Score every ad and sort by overall score, highest first.

    ``sorted`` is stable, so ads with equal scores keep their input order.
    """
    results = [score(ad, video) for ad in ads]
    return sorted(results, key=lambda m: m.overall_score, reverse=True)


def is_valid_placement(schedule: Sequence[ScheduleItem], timestamp: float) -> bool:
    """True if *timestamp* is at least MIN_AD_SPACING from every placed ad."""
    return all(abs(item.insert_at_seconds - timestamp) >= MIN_AD_SPACING for item in schedule)


def build_schedule(
    ranked_matches: Sequence[MatchResult],
    break_points: Sequence[BreakPoint],
    max_ads: int,
) -> list[ScheduleItem]:
    """Assign ranked matches to break points, respecting ad spacing.

    Break points are visited by priority (highest first, ties in input
    order). Each accepted break point takes the next unused match in rank
    order; matches are never re-ordered to fit a slot. The result is sorted
    by insertion time.
    """
    schedule: list[ScheduleItem] = []
    if not ranked_matches or not break_points or max_ads <= 0:
        return schedule

    by_priority = sorted(break_points, key=lambda bp: bp.priority, reverse=True)
    match_index = 0

    for break_point in by_priority:
        if len(schedule) >= max_ads or match_index >= len(ranked_matches):
            break

        if not is_valid_placement(schedule, break_point.timestamp_seconds):
            continue

        match = ranked_matches[match_index]
        schedule.append(ScheduleItem(
            ad_id=match.ad_id,
            insert_at_seconds=break_point.timestamp_seconds,
            duration_seconds=match.duration_seconds,
            score=match.overall_score,
            reason=match.reason,
        ))
        match_index += 1

    return sorted(schedule, key=lambda item: item.insert_at_seconds)
