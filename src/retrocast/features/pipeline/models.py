"""Worker payload and outcome schemas."""

from enum import Enum

from retrocast.features.pipeline.styles import StyleProfile
from retrocast.platform.schemas import CamelModel


class WorkerPayload(CamelModel):
    """Everything the worker needs; delivered once per task (at least once)."""

    job_id: str
    user_id: str
    video_ref: str
    ad_refs: list[str] = []
    style_profile: StyleProfile


class OutcomeStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class PipelineOutcome(CamelModel):
    job_id: str
    status: OutcomeStatus
    storage_ref: str | None = None
    error: str | None = None
