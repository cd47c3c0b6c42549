"""TinyDB storage operations for processed-video results."""

from tinydb import TinyDB, Query

from retrocast.platform.tinydb_store import db_lock as _db_lock, resolve as _db


def save_result(record: dict, db: TinyDB | None = None) -> None:
    """Insert or replace the result for ``record["job_id"]``."""
    with _db_lock:
        Result = Query()
        _db(db).table("processed_videos").upsert(
            dict(record), Result.job_id == record["job_id"]
        )


def get_result_for_job(job_id: str, db: TinyDB | None = None) -> dict | None:
    with _db_lock:
        Result = Query()
        results = _db(db).table("processed_videos").search(Result.job_id == job_id)
        return dict(results[0]) if results else None
