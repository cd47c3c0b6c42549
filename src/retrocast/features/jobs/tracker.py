"""JobStatusTracker: owns the persisted lifecycle record of every job.

All writes are upserts keyed by job id, so a redelivered task can replay its
stage updates safely. Records in a terminal stage are never moved back out.
"""

from datetime import datetime, timezone

from retrocast.features.jobs.models import ProcessingStage, is_terminal
from retrocast.platform.logging_config import get_logger
from retrocast.platform.protocols import JobStatusStoragePort

logger = get_logger(__name__)

QUEUED_INFO = "Video queued for processing..."
FAILED_INFO = "Processing failed"
COMPLETED_INFO = "Video processing complete!"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_status_record(job_id: str, user_id: str, info: str = QUEUED_INFO) -> dict:
    """Build a fresh QUEUED record."""
    now = _now()
    return {
        "id": job_id,
        "user_id": user_id,
        "stage": ProcessingStage.QUEUED.value,
        "info": info,
        "progress_percent": 0,
        "error_message": None,
        "started_at": now,
        "updated_at": now,
        "completed_at": None,
    }


class JobStatusTracker:
    def __init__(self, storage: JobStatusStoragePort, active_ttl_seconds: int):
        self._storage = storage
        self._active_ttl = active_ttl_seconds

    # --- creation ---

    def create_status(self, job_id: str, user_id: str, info: str = QUEUED_INFO) -> dict:
        """Create (or reset) the QUEUED record for a job."""
        record = new_status_record(job_id, user_id, info)
        self._storage.upsert_job(record)
        logger.info("job_status_created", job_id=job_id, user_id=user_id)
        return record

    def create_if_idle(self, job_id: str, user_id: str, info: str = QUEUED_INFO) -> dict | None:
        """Create the QUEUED record only if the user has no in-flight job.

        Returns None when another job is still in flight.
        """
        record = new_status_record(job_id, user_id, info)
        created = self._storage.create_if_idle(user_id, record, self._active_ttl)
        if created is not None:
            logger.info("job_status_created", job_id=job_id, user_id=user_id)
        return created

    # --- transitions ---

    def _load_for_update(self, job_id: str, user_id: str) -> dict | None:
        """Return the current record, or None if it is terminal and must not change."""
        existing = self._storage.get_job(job_id)
        if existing is None:
            return new_status_record(job_id, user_id)
        if is_terminal(existing.get("stage")):
            logger.warning(
                "job_status_update_ignored",
                job_id=job_id,
                stage=existing.get("stage"),
            )
            return None
        return existing

    def update_status(
        self,
        job_id: str,
        user_id: str,
        stage: ProcessingStage,
        info: str,
        progress_percent: int,
    ) -> None:
        """Overwrite stage, info and progress; creates the record if missing."""
        record = self._load_for_update(job_id, user_id)
        if record is None:
            return
        record.update({
            "stage": ProcessingStage(stage).value,
            "info": info,
            "progress_percent": progress_percent,
            "updated_at": _now(),
        })
        self._storage.upsert_job(record)
        logger.info(
            "job_status_updated",
            job_id=job_id,
            stage=record["stage"],
            progress=progress_percent,
        )

    def mark_failed(self, job_id: str, user_id: str, error_message: str) -> None:
        """Move the job to FAILED, keeping its last progress value."""
        record = self._load_for_update(job_id, user_id)
        if record is not None:
            now = _now()
            record.update({
                "stage": ProcessingStage.FAILED.value,
                "info": FAILED_INFO,
                "error_message": error_message,
                "updated_at": now,
                "completed_at": now,
            })
            self._storage.upsert_job(record)
            logger.error("job_failed", job_id=job_id, user_id=user_id, error=error_message)
        self._storage.release_active(user_id, job_id)

    def mark_completed(self, job_id: str, user_id: str) -> None:
        record = self._load_for_update(job_id, user_id)
        if record is not None:
            now = _now()
            record.update({
                "stage": ProcessingStage.COMPLETED.value,
                "info": COMPLETED_INFO,
                "progress_percent": 100,
                "updated_at": now,
                "completed_at": now,
            })
            self._storage.upsert_job(record)
            logger.info("job_completed", job_id=job_id, user_id=user_id)
        self._storage.release_active(user_id, job_id)

    # --- queries ---

    def get_status(self, job_id: str) -> dict | None:
        return self._storage.get_job(job_id)

    def get_latest_status(self, user_id: str) -> dict | None:
        return self._storage.get_latest_job(user_id)

    def has_active_job(self, user_id: str) -> bool:
        return self._storage.get_active_job(user_id, self._active_ttl) is not None


def get_tracker() -> JobStatusTracker:
    """FastAPI dependency: a tracker over the configured status storage."""
    from retrocast.platform.config import get_settings
    from retrocast.platform.storage_factory import get_status_storage

    return JobStatusTracker(get_status_storage(), get_settings().active_job_ttl_seconds)
