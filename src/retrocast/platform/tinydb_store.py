"""Shared TinyDB handle for the jobs, catalog and results tables.

All tables live in one JSON file, so every module serialises its access
through the same lock.
"""

import threading

from tinydb import TinyDB

from retrocast.platform.config import get_settings

# Module-level lock protects all TinyDB operations against concurrent access
# from the API thread pool and in-process worker threads.
db_lock = threading.Lock()

# Singleton TinyDB instance, one per path
_db_instance: TinyDB | None = None
_db_instance_path: str | None = None


def init_db(path: str | None = None) -> TinyDB:
    """Return a singleton TinyDB instance for *path* (default ``DB_PATH``)."""
    global _db_instance, _db_instance_path
    path = path or get_settings().db_path
    if _db_instance is None or _db_instance_path != path:
        _db_instance = TinyDB(path)
        _db_instance_path = path
    return _db_instance


def resolve(db: TinyDB | None = None) -> TinyDB:
    """Return *db* when given (tests), else the shared instance."""
    return db if db is not None else init_db()
