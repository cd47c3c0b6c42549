"""Firestore adapter implementations for RetroCast storage ports.

Uses firebase-admin SDK. Each adapter maps to a Protocol:
  - FirestoreJobsAdapter     → JobStatusStoragePort
  - FirestoreCatalogAdapter  → CatalogLookup
  - FirestoreResultsAdapter  → ResultStoragePort

All adapters talk to Firestore server-side (admin SDK bypasses security rules).
The firebase-admin SDK is initialised lazily on first use.
"""

from datetime import datetime, timezone
from functools import lru_cache

from google.cloud.firestore_v1.base_query import FieldFilter

from retrocast.features.jobs.models import is_in_flight
from retrocast.platform.logging_config import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def _firestore_client():
    """Lazy-init firebase-admin and return the Firestore client.

    Caches the client so firebase_admin.initialize_app() is called at most once.
    """
    import firebase_admin
    from firebase_admin import firestore

    if not firebase_admin._apps:
        firebase_admin.initialize_app()
    return firestore.client()


# ---------------------------------------------------------------------------
# Job status + active markers
# ---------------------------------------------------------------------------


class FirestoreJobsAdapter:
    """JobStatusStoragePort implementation backed by Firestore.

    Active markers live in ``active_jobs/<user_id>`` and are only changed
    inside transactions.
    """

    def __init__(self, db=None):
        self._db = db if db is not None else _firestore_client()

    def create_if_idle(
        self, user_id: str, record: dict, ttl_seconds: int
    ) -> dict | None:
        """Atomically claim the active marker and create the job.

        Uses a Firestore transaction; a concurrent claim makes one side retry
        and observe the other's marker.
        """
        from google.cloud.firestore_v1 import transactional

        transaction = self._db.transaction()
        marker_ref = self._db.collection("active_jobs").document(user_id)
        job_ref = self._db.collection("jobs").document(record["id"])

        @transactional
        def _claim(txn):
            marker = marker_ref.get(transaction=txn)
            if marker.exists:
                current_id = marker.to_dict().get("job_id")
                current = self._db.collection("jobs").document(current_id).get(transaction=txn)
                if is_in_flight(current.to_dict() if current.exists else None, ttl_seconds):
                    return None

            txn.set(marker_ref, {"user_id": user_id, "job_id": record["id"]})
            txn.set(job_ref, record)
            return record

        return _claim(transaction)

    def upsert_job(self, record: dict) -> None:
        self._db.collection("jobs").document(record["id"]).set(record)

    def get_job(self, job_id: str) -> dict | None:
        doc = self._db.collection("jobs").document(job_id).get()
        return doc.to_dict() if doc.exists else None

    def get_latest_job(self, user_id: str) -> dict | None:
        query = self._db.collection("jobs").where(filter=FieldFilter("user_id", "==", user_id))
        jobs = [doc.to_dict() for doc in query.stream()]
        if not jobs:
            return None
        # Sorted client-side to avoid a composite index
        return max(jobs, key=lambda j: j.get("started_at") or "")

    def get_active_job(self, user_id: str, ttl_seconds: int) -> dict | None:
        marker = self._db.collection("active_jobs").document(user_id).get()
        if not marker.exists:
            return None
        job = self.get_job(marker.to_dict().get("job_id"))
        return job if is_in_flight(job, ttl_seconds) else None

    def release_active(self, user_id: str, job_id: str) -> None:
        from google.cloud.firestore_v1 import transactional

        transaction = self._db.transaction()
        marker_ref = self._db.collection("active_jobs").document(user_id)

        @transactional
        def _release(txn):
            marker = marker_ref.get(transaction=txn)
            if marker.exists and marker.to_dict().get("job_id") == job_id:
                txn.delete(marker_ref)

        _release(transaction)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


_COLLECTIONS = {"video": "videos", "ad": "ads"}


class FirestoreCatalogAdapter:
    """CatalogLookup implementation backed by Firestore."""

    def __init__(self, db=None):
        self._db = db if db is not None else _firestore_client()

    def _get(self, kind: str, ref: str) -> dict | None:
        doc = self._db.collection(_COLLECTIONS[kind]).document(ref).get()
        return doc.to_dict() if doc.exists else None

    def _save(self, kind: str, record: dict) -> dict:
        record = dict(record)
        record.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        self._db.collection(_COLLECTIONS[kind]).document(record["id"]).set(record)
        return record

    def resolve_ownership(self, ref: str, user_id: str, kind: str) -> bool:
        if kind not in _COLLECTIONS:
            raise ValueError(f"Unknown catalog kind: {kind!r}")
        record = self._get(kind, ref)
        return record is not None and record.get("user_id") == user_id

    def get_video(self, ref: str) -> dict | None:
        return self._get("video", ref)

    def get_ad(self, ref: str) -> dict | None:
        return self._get("ad", ref)

    def add_video(self, record: dict) -> dict:
        return self._save("video", record)

    def add_ad(self, record: dict) -> dict:
        return self._save("ad", record)


# ---------------------------------------------------------------------------
# Processed-video results
# ---------------------------------------------------------------------------


class FirestoreResultsAdapter:
    """ResultStoragePort implementation backed by Firestore.

    Documents are keyed by job id so a redelivered task overwrites its result.
    """

    def __init__(self, db=None):
        self._db = db if db is not None else _firestore_client()

    def save_result(self, record: dict) -> None:
        self._db.collection("processed_videos").document(record["job_id"]).set(record)
        logger.debug("result_saved", job_id=record["job_id"])

    def get_result_for_job(self, job_id: str) -> dict | None:
        doc = self._db.collection("processed_videos").document(job_id).get()
        return doc.to_dict() if doc.exists else None
