"""Dispatcher: validates a submission, guards the one-job-per-user rule and
hands the work to the task queue.
"""

import uuid

from retrocast.features.jobs.tracker import JobStatusTracker, QUEUED_INFO
from retrocast.features.pipeline.models import WorkerPayload
from retrocast.features.pipeline.styles import StyleProfile
from retrocast.platform.errors import (
    ConflictError,
    ExternalServiceError,
    ValidationError,
)
from retrocast.platform.logging_config import get_logger
from retrocast.platform.protocols import CatalogLookup, TaskQueue

logger = get_logger(__name__)


class Dispatcher:
    def __init__(
        self,
        tracker: JobStatusTracker,
        catalog: CatalogLookup,
        queue: TaskQueue,
    ):
        self._tracker = tracker
        self._catalog = catalog
        self._queue = queue

    def _validate(self, user_id: str, video_ref: str, ad_refs: list[str]) -> None:
        if not video_ref:
            raise ValidationError("video_ref is required")
        if not self._catalog.resolve_ownership(video_ref, user_id, "video"):
            raise ValidationError(f"Video not found or not owned by user: {video_ref}")
        for ad_ref in ad_refs:
            if not self._catalog.resolve_ownership(ad_ref, user_id, "ad"):
                raise ValidationError(f"Ad not found or not owned by user: {ad_ref}")

    def submit_job(
        self,
        user_id: str,
        video_ref: str,
        ad_refs: list[str],
        style_profile: StyleProfile,
    ) -> str:
        """Create a QUEUED job and enqueue it, returning the new job id.

        Raises:
            ValidationError: a reference is missing or owned by someone else.
            ConflictError: the user already has a job in flight.
            ExternalServiceError: the task could not be enqueued.
        """
        ad_refs = list(ad_refs or [])
        self._validate(user_id, video_ref, ad_refs)

        job_id = str(uuid.uuid4())

        # Marker claim and record insert happen in one critical section
        created = self._tracker.create_if_idle(job_id, user_id, QUEUED_INFO)
        if created is None:
            logger.info("job_submission_conflict", user_id=user_id)
            raise ConflictError(
                "A video is already processing for this user. "
                "Please wait for it to finish."
            )

        payload = WorkerPayload(
            job_id=job_id,
            user_id=user_id,
            video_ref=video_ref,
            ad_refs=ad_refs,
            style_profile=style_profile,
        )
        try:
            task_name = self._queue.enqueue(payload)
        except Exception as exc:
            self._tracker.mark_failed(job_id, user_id, f"Failed to enqueue job: {exc}")
            logger.exception("job_enqueue_failed", job_id=job_id, user_id=user_id)
            raise ExternalServiceError(f"Failed to enqueue job: {exc}") from exc

        logger.info(
            "job_dispatched",
            job_id=job_id,
            user_id=user_id,
            video_ref=video_ref,
            ads=len(ad_refs),
            style=StyleProfile(style_profile).value,
            task=task_name,
        )
        return job_id
