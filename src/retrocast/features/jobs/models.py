"""Job domain models and Pydantic schemas."""

from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import Field

from retrocast.features.pipeline.styles import StyleProfile
from retrocast.platform.schemas import CamelModel


class ProcessingStage(str, Enum):
    """Lifecycle stage of a job, in display order."""

    QUEUED = "QUEUED"
    DOWNLOADING = "DOWNLOADING"
    ANALYZING = "ANALYZING"
    APPLYING_EFFECTS = "APPLYING_EFFECTS"
    INSERTING_ADS = "INSERTING_ADS"
    ADDING_AUDIO_EFFECTS = "ADDING_AUDIO_EFFECTS"
    ENCODING = "ENCODING"
    UPLOADING = "UPLOADING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


TERMINAL_STAGES = frozenset({ProcessingStage.COMPLETED, ProcessingStage.FAILED})


def is_terminal(stage: str | ProcessingStage | None) -> bool:
    """True when *stage* is COMPLETED or FAILED."""
    if stage is None:
        return False
    return ProcessingStage(stage) in TERMINAL_STAGES


def is_in_flight(job: dict | None, ttl_seconds: int) -> bool:
    """True if *job* is non-terminal and was updated within the last *ttl_seconds*.

    The TTL lets a user submit again after a worker died without recording
    a terminal stage.
    """
    if job is None or is_terminal(job.get("stage")):
        return False
    updated_at = job.get("updated_at") or job.get("started_at")
    if not updated_at:
        return True
    age = datetime.now(timezone.utc) - datetime.fromisoformat(updated_at)
    return age < timedelta(seconds=ttl_seconds)


# --- Request / Response schemas ---


class JobSubmitRequest(CamelModel):
    """Payload for submitting a new processing job."""

    video_ref: str = Field(min_length=1)
    ad_refs: list[str] = []
    style_profile: StyleProfile


class JobSubmitResponse(CamelModel):
    job_id: str
    status: str = ProcessingStage.QUEUED.value


class JobResponse(CamelModel):
    """Public representation of a job status record."""

    id: str
    user_id: str
    stage: ProcessingStage
    info: str = ""
    progress_percent: int = 0
    error_message: str | None = None
    started_at: str | None = None
    updated_at: str | None = None
    completed_at: str | None = None


class ProcessedVideoResponse(CamelModel):
    """Result entity recorded when a job completes."""

    id: str
    job_id: str
    user_id: str
    source_video_ref: str
    style_profile: StyleProfile
    file_name: str
    storage_ref: str
    insertion_points: str = ""
    schedule: list[dict] = []
    summary: str = ""
    processed_at: str
