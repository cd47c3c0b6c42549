"""Unit tests for the Dispatcher with fake catalog and queue adapters."""

import uuid

import pytest
from tinydb import TinyDB
from tinydb.storages import MemoryStorage

from retrocast.features.jobs.dispatcher import Dispatcher
from retrocast.features.jobs.tracker import JobStatusTracker
from retrocast.features.pipeline.models import WorkerPayload
from retrocast.features.pipeline.styles import StyleProfile
from retrocast.platform.errors import (
    ConflictError,
    ExternalServiceError,
    ValidationError,
)
from retrocast.platform.tinydb_jobs_adapter import TinyDBJobsAdapter


# ---------------------------------------------------------------------------
# Test helpers: lightweight fakes implementing the Protocols
# ---------------------------------------------------------------------------


class FakeCatalog:
    """In-memory CatalogLookup; assets keyed by (kind, ref) → owner."""

    def __init__(self, assets: dict[tuple[str, str], str]):
        self._assets = assets

    def resolve_ownership(self, ref: str, user_id: str, kind: str) -> bool:
        return self._assets.get((kind, ref)) == user_id

    def get_video(self, ref: str) -> dict | None:
        return None

    def get_ad(self, ref: str) -> dict | None:
        return None


class FakeQueue:
    """Records enqueued payloads; optionally fails."""

    def __init__(self, error: Exception | None = None):
        self.payloads: list[WorkerPayload] = []
        self._error = error

    def enqueue(self, payload: WorkerPayload) -> str:
        if self._error is not None:
            raise self._error
        self.payloads.append(payload)
        return f"task-{payload.job_id}"


ASSETS = {
    ("video", "vid1"): "u1",
    ("ad", "ad1"): "u1",
    ("ad", "ad2"): "u1",
    ("video", "vid_other"): "u2",
    ("ad", "ad_other"): "u2",
}


@pytest.fixture
def tracker():
    db = TinyDB(storage=MemoryStorage)
    yield JobStatusTracker(TinyDBJobsAdapter(db), active_ttl_seconds=3600)
    db.close()


@pytest.fixture
def queue():
    return FakeQueue()


@pytest.fixture
def dispatcher(tracker, queue):
    return Dispatcher(tracker, FakeCatalog(ASSETS), queue)


class TestSubmitJob:
    def test_creates_queued_job_and_enqueues(self, dispatcher, tracker, queue):
        """Should return a UUID, create a QUEUED record and enqueue the payload."""
        job_id = dispatcher.submit_job("u1", "vid1", ["ad1", "ad2"], StyleProfile.VHS)

        uuid.UUID(job_id)
        job = tracker.get_status(job_id)
        assert job["stage"] == "QUEUED"
        assert job["progress_percent"] == 0
        assert job["info"] == "Video queued for processing..."

        assert len(queue.payloads) == 1
        payload = queue.payloads[0]
        assert payload.job_id == job_id
        assert payload.user_id == "u1"
        assert payload.video_ref == "vid1"
        assert payload.ad_refs == ["ad1", "ad2"]
        assert payload.style_profile is StyleProfile.VHS

    def test_rejects_video_owned_by_someone_else(self, dispatcher, tracker, queue):
        with pytest.raises(ValidationError, match="vid_other"):
            dispatcher.submit_job("u1", "vid_other", [], StyleProfile.CRT)

        assert queue.payloads == []
        assert tracker.get_latest_status("u1") is None

    def test_rejects_unknown_ad_naming_it(self, dispatcher, queue):
        with pytest.raises(ValidationError, match="ad_missing"):
            dispatcher.submit_job("u1", "vid1", ["ad1", "ad_missing"], StyleProfile.CRT)

        assert queue.payloads == []

    def test_rejects_foreign_ad(self, dispatcher):
        with pytest.raises(ValidationError, match="ad_other"):
            dispatcher.submit_job("u1", "vid1", ["ad_other"], StyleProfile.CRT)

    def test_second_submission_conflicts_without_side_effects(self, dispatcher, tracker, queue):
        first = dispatcher.submit_job("u1", "vid1", [], StyleProfile.CRT)

        with pytest.raises(ConflictError, match="already processing"):
            dispatcher.submit_job("u1", "vid1", [], StyleProfile.ARCADE)

        assert len(queue.payloads) == 1
        assert tracker.get_latest_status("u1")["id"] == first

    @pytest.mark.parametrize("finish", ["completed", "failed"])
    def test_new_submission_allowed_after_terminal(self, dispatcher, tracker, finish):
        first = dispatcher.submit_job("u1", "vid1", [], StyleProfile.CRT)
        if finish == "completed":
            tracker.mark_completed(first, "u1")
        else:
            tracker.mark_failed(first, "u1", "boom")

        second = dispatcher.submit_job("u1", "vid1", [], StyleProfile.CRT)

        assert second != first

    def test_enqueue_failure_marks_job_failed(self, tracker):
        dispatcher = Dispatcher(
            tracker, FakeCatalog(ASSETS), FakeQueue(error=RuntimeError("queue down"))
        )

        with pytest.raises(ExternalServiceError, match="queue down"):
            dispatcher.submit_job("u1", "vid1", [], StyleProfile.CRT)

        job = tracker.get_latest_status("u1")
        assert job["stage"] == "FAILED"
        assert "queue down" in job["error_message"]
        assert not tracker.has_active_job("u1")
