"""TinyDB storage operations for job status records and active-job markers."""

from tinydb import TinyDB, Query

from retrocast.features.jobs.models import is_in_flight
from retrocast.platform.tinydb_store import db_lock as _db_lock, resolve as _db


def _lookup_active(database: TinyDB, user_id: str, ttl_seconds: int) -> dict | None:
    Marker = Query()
    markers = database.table("active_jobs").search(Marker.user_id == user_id)
    if not markers:
        return None
    Job = Query()
    jobs = database.table("jobs").search(Job.id == markers[0]["job_id"])
    job = jobs[0] if jobs else None
    return job if is_in_flight(job, ttl_seconds) else None


# ---------------------------------------------------------------------------
# Job status CRUD
# ---------------------------------------------------------------------------


def create_if_idle(
    user_id: str,
    record: dict,
    ttl_seconds: int,
    db: TinyDB | None = None,
) -> dict | None:
    """Atomically claim the user's active marker and insert a job record.

    Returns the inserted record, or None if the marker already names an
    in-flight job. A marker pointing at a terminal or stale job is taken over.
    """
    with _db_lock:
        database = _db(db)
        if _lookup_active(database, user_id, ttl_seconds) is not None:
            return None

        Marker = Query()
        database.table("active_jobs").upsert(
            {"user_id": user_id, "job_id": record["id"]},
            Marker.user_id == user_id,
        )
        Job = Query()
        database.table("jobs").upsert(dict(record), Job.id == record["id"])
        return record


def upsert_job(record: dict, db: TinyDB | None = None) -> None:
    """Insert or replace the record with ``record["id"]``."""
    with _db_lock:
        Job = Query()
        _db(db).table("jobs").upsert(dict(record), Job.id == record["id"])


def get_job(job_id: str, db: TinyDB | None = None) -> dict | None:
    """Retrieve a single job by id."""
    with _db_lock:
        Job = Query()
        results = _db(db).table("jobs").search(Job.id == job_id)
        return dict(results[0]) if results else None


def get_latest_job(user_id: str, db: TinyDB | None = None) -> dict | None:
    """Return the user's most recently started job, or None."""
    with _db_lock:
        Job = Query()
        results = _db(db).table("jobs").search(Job.user_id == user_id)
        if not results:
            return None
        latest = max(results, key=lambda j: j.get("started_at") or "")
        return dict(latest)


def get_active_job(
    user_id: str, ttl_seconds: int, db: TinyDB | None = None
) -> dict | None:
    """Return the user's in-flight job named by the active marker, or None."""
    with _db_lock:
        job = _lookup_active(_db(db), user_id, ttl_seconds)
        return dict(job) if job else None


def release_active(user_id: str, job_id: str, db: TinyDB | None = None) -> None:
    """Drop the user's active marker if it still points at *job_id*."""
    with _db_lock:
        Marker = Query()
        _db(db).table("active_jobs").remove(
            (Marker.user_id == user_id) & (Marker.job_id == job_id)
        )
