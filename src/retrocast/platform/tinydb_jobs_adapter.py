"""TinyDB adapter wrapping jobs/storage free functions behind JobStatusStoragePort."""

from tinydb import TinyDB

from retrocast.features.jobs import storage as job_storage


class TinyDBJobsAdapter:
    """Wraps retrocast.features.jobs.storage behind JobStatusStoragePort Protocol."""

    def __init__(self, db: TinyDB | None = None):
        self._db = db

    def create_if_idle(
        self, user_id: str, record: dict, ttl_seconds: int
    ) -> dict | None:
        return job_storage.create_if_idle(user_id, record, ttl_seconds, db=self._db)

    def upsert_job(self, record: dict) -> None:
        job_storage.upsert_job(record, db=self._db)

    def get_job(self, job_id: str) -> dict | None:
        return job_storage.get_job(job_id, db=self._db)

    def get_latest_job(self, user_id: str) -> dict | None:
        return job_storage.get_latest_job(user_id, db=self._db)

    def get_active_job(self, user_id: str, ttl_seconds: int) -> dict | None:
        return job_storage.get_active_job(user_id, ttl_seconds, db=self._db)

    def release_active(self, user_id: str, job_id: str) -> None:
        job_storage.release_active(user_id, job_id, db=self._db)
