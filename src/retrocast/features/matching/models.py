"""Pydantic models for ad matching and scheduling."""

from pydantic import ConfigDict, Field

from retrocast.platform.schemas import CamelModel


class AdCandidate(CamelModel):
    """Immutable snapshot of one ad's metadata for a single matching run."""

    model_config = ConfigDict(frozen=True)

    id: str
    categories: frozenset[str] = frozenset()
    tone: str | None = None
    era_style: str | None = None
    energy_level: int | None = Field(default=None, ge=1, le=10)
    duration_seconds: float | None = None


class BreakPoint(CamelModel):
    """A suggested ad insertion point in the target video."""

    model_config = ConfigDict(frozen=True)

    timestamp_seconds: float = Field(ge=0)
    priority: int = Field(ge=1, le=10)
    reason: str = ""
    suggested_categories: tuple[str, ...] = ()


class VideoProfile(CamelModel):
    """Content profile of the video the ads are matched against."""

    model_config = ConfigDict(frozen=True)

    video_id: str
    categories: frozenset[str] = frozenset()
    sentiment: str | None = None
    duration_seconds: float | None = None
    break_points: tuple[BreakPoint, ...] = ()


class MatchResult(CamelModel):
    ad_id: str
    overall_score: float
    category_score: float
    tone_score: float
    era_score: float
    energy_score: float
    matched_categories: list[str] = []
    reason: str
    duration_seconds: float = 30


class ScheduleItem(CamelModel):
    ad_id: str
    insert_at_seconds: float
    duration_seconds: float
    score: float
    reason: str


# --- API schemas ---


class ScheduleRequest(CamelModel):
    """Body for previewing a match + schedule without running a job."""

    video: VideoProfile
    ads: list[AdCandidate]
    max_ads: int = Field(default=3, ge=1, le=20)


class ScheduleResponse(CamelModel):
    matches: list[MatchResult]
    schedule: list[ScheduleItem]
