"""Backend factory: selects TinyDB or Firestore, local or S3 blobs, and the
task queue implementation from settings.

Usage in FastAPI routes::

    from retrocast.platform.storage_factory import get_status_storage

    @router.get("/jobs/latest-status")
    def latest(storage: JobStatusStoragePort = Depends(get_status_storage)):
        ...
"""

from functools import lru_cache

from retrocast.platform.config import get_settings
from retrocast.platform.protocols import (
    BlobStore,
    CatalogLookup,
    JobStatusStoragePort,
    ResultStoragePort,
    TaskQueue,
)


@lru_cache(maxsize=1)
def _backend() -> str:
    """Read the storage backend once and cache it for the process lifetime."""
    return get_settings().storage_backend


def get_status_storage() -> JobStatusStoragePort:
    """Return a JobStatusStoragePort adapter for the configured backend."""
    if _backend() == "firestore":
        from retrocast.platform.firestore_adapter import FirestoreJobsAdapter

        return FirestoreJobsAdapter()

    from retrocast.platform.tinydb_jobs_adapter import TinyDBJobsAdapter

    return TinyDBJobsAdapter()


def get_catalog() -> CatalogLookup:
    """Return a CatalogLookup adapter for the configured backend."""
    if _backend() == "firestore":
        from retrocast.platform.firestore_adapter import FirestoreCatalogAdapter

        return FirestoreCatalogAdapter()

    from retrocast.platform.tinydb_catalog_adapter import TinyDBCatalogAdapter

    return TinyDBCatalogAdapter()


def get_result_storage() -> ResultStoragePort:
    """Return a ResultStoragePort adapter for the configured backend."""
    if _backend() == "firestore":
        from retrocast.platform.firestore_adapter import FirestoreResultsAdapter

        return FirestoreResultsAdapter()

    from retrocast.platform.tinydb_catalog_adapter import TinyDBResultsAdapter

    return TinyDBResultsAdapter()


@lru_cache(maxsize=1)
def get_blob_store() -> BlobStore:
    """Return the BlobStore for the configured blob backend."""
    from retrocast.platform.blob_store import LocalBlobStore, S3BlobStore

    settings = get_settings()
    if settings.blob_backend == "s3":
        return S3BlobStore(settings.s3_bucket)
    return LocalBlobStore(settings.blob_root)


@lru_cache(maxsize=1)
def get_task_queue() -> TaskQueue:
    """Return the TaskQueue for the configured backend.

    The local queue runs the pipeline worker in-process.
    """
    from retrocast.platform.task_queue import CloudTasksQueue, LocalTaskQueue

    settings = get_settings()
    if settings.task_queue_backend == "cloudtasks":
        return CloudTasksQueue(
            project_id=settings.gcp_project_id,
            location=settings.gcp_location,
            queue=settings.gcp_task_queue,
            worker_base_url=settings.worker_base_url,
            service_account=settings.worker_service_account,
        )

    from retrocast.features.pipeline.worker import build_worker

    return LocalTaskQueue(lambda payload: build_worker().run(payload))
