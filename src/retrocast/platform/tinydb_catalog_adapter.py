"""TinyDB adapters wrapping catalog and result storage behind their Protocols."""

from tinydb import TinyDB

from retrocast.features.catalog import storage as catalog_storage
from retrocast.features.pipeline import storage as result_storage


class TinyDBCatalogAdapter:
    """Wraps retrocast.features.catalog.storage behind CatalogLookup Protocol."""

    def __init__(self, db: TinyDB | None = None):
        self._db = db

    def resolve_ownership(self, ref: str, user_id: str, kind: str) -> bool:
        return catalog_storage.resolve_ownership(ref, user_id, kind, db=self._db)

    def get_video(self, ref: str) -> dict | None:
        return catalog_storage.get_video(ref, db=self._db)

    def get_ad(self, ref: str) -> dict | None:
        return catalog_storage.get_ad(ref, db=self._db)

    def add_video(self, record: dict) -> dict:
        return catalog_storage.add_video(record, db=self._db)

    def add_ad(self, record: dict) -> dict:
        return catalog_storage.add_ad(record, db=self._db)


class TinyDBResultsAdapter:
    """Wraps retrocast.features.pipeline.storage behind ResultStoragePort Protocol."""

    def __init__(self, db: TinyDB | None = None):
        self._db = db

    def save_result(self, record: dict) -> None:
        result_storage.save_result(record, db=self._db)

    def get_result_for_job(self, job_id: str) -> dict | None:
        return result_storage.get_result_for_job(job_id, db=self._db)
