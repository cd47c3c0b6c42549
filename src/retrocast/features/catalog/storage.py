"""TinyDB storage operations for the video and ad catalog."""

from datetime import datetime, timezone

from tinydb import TinyDB, Query

from retrocast.platform.tinydb_store import db_lock as _db_lock, resolve as _db

_TABLES = {"video": "videos", "ad": "ads"}


def _table_for(kind: str) -> str:
    try:
        return _TABLES[kind]
    except KeyError:
        raise ValueError(f"Unknown catalog kind: {kind!r}")


def _save(kind: str, record: dict, db: TinyDB | None) -> dict:
    with _db_lock:
        record = dict(record)
        record.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        Asset = Query()
        _db(db).table(_table_for(kind)).upsert(record, Asset.id == record["id"])
        return record


def _get(kind: str, ref: str, db: TinyDB | None) -> dict | None:
    with _db_lock:
        Asset = Query()
        results = _db(db).table(_table_for(kind)).search(Asset.id == ref)
        return dict(results[0]) if results else None


def add_video(record: dict, db: TinyDB | None = None) -> dict:
    """Register (or replace) a source video."""
    return _save("video", record, db)


def add_ad(record: dict, db: TinyDB | None = None) -> dict:
    """Register (or replace) an ad asset and its matching metadata."""
    return _save("ad", record, db)


def get_video(ref: str, db: TinyDB | None = None) -> dict | None:
    return _get("video", ref, db)


def get_ad(ref: str, db: TinyDB | None = None) -> dict | None:
    return _get("ad", ref, db)


def resolve_ownership(
    ref: str, user_id: str, kind: str, db: TinyDB | None = None
) -> bool:
    """True if the asset exists and belongs to *user_id*."""
    record = _get(kind, ref, db)
    return record is not None and record.get("user_id") == user_id
