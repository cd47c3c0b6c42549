"""Integration test fixtures for the Firestore emulator.

Requires:
  1. firebase-admin installed:  pip install -e ".[firebase]"
  2. Firestore emulator running: firebase emulators:start --only firestore

When either requirement is missing, all tests in this directory are skipped.
"""

import os
import urllib.error
import urllib.request

import pytest

firebase_admin = pytest.importorskip("firebase_admin", reason="firebase-admin not installed")


def _emulator_running() -> bool:
    """Check if the Firestore emulator is reachable."""
    host = os.environ.get("FIRESTORE_EMULATOR_HOST", "localhost:8081")
    try:
        urllib.request.urlopen(f"http://{host}", timeout=2)
        return True
    except (urllib.error.URLError, OSError):
        return False


if not _emulator_running():
    pytest.skip(
        "Firestore emulator not running (start with: firebase emulators:start --only firestore)",
        allow_module_level=True,
    )


from retrocast.platform.firestore_adapter import (  # noqa: E402
    FirestoreCatalogAdapter,
    FirestoreJobsAdapter,
    FirestoreResultsAdapter,
    _firestore_client,
)


def _wipe(db, *collections):
    for name in collections:
        for doc in db.collection(name).stream():
            doc.reference.delete()


@pytest.fixture(autouse=True)
def _set_emulator_env(monkeypatch):
    """Ensure FIRESTORE_EMULATOR_HOST is set for all integration tests."""
    host = os.environ.get("FIRESTORE_EMULATOR_HOST", "localhost:8081")
    monkeypatch.setenv("FIRESTORE_EMULATOR_HOST", host)
    monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", os.environ.get("GOOGLE_CLOUD_PROJECT", "retrocast-test"))


@pytest.fixture(autouse=True)
def _clear_firebase_app():
    """Reset firebase-admin between tests to use emulator config."""
    _firestore_client.cache_clear()
    yield
    _firestore_client.cache_clear()
    for app_name in list(firebase_admin._apps.keys()):
        firebase_admin.delete_app(firebase_admin._apps[app_name])


@pytest.fixture
def jobs_adapter():
    """Return a FirestoreJobsAdapter pointed at the emulator."""
    adapter = FirestoreJobsAdapter()
    yield adapter
    _wipe(adapter._db, "jobs", "active_jobs")


@pytest.fixture
def catalog_adapter():
    adapter = FirestoreCatalogAdapter()
    yield adapter
    _wipe(adapter._db, "videos", "ads")


@pytest.fixture
def results_adapter():
    adapter = FirestoreResultsAdapter()
    yield adapter
    _wipe(adapter._db, "processed_videos")
