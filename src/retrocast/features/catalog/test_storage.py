"""Unit tests for catalog storage (TinyDB)."""

import pytest
from tinydb import TinyDB
from tinydb.storages import MemoryStorage

from retrocast.features.catalog import storage


@pytest.fixture
def db():
    database = TinyDB(storage=MemoryStorage)
    storage.add_video({"id": "vid1", "user_id": "u1", "blob_ref": "uploads/vid1.mp4"}, db=database)
    storage.add_ad(
        {"id": "ad1", "user_id": "u1", "blob_ref": "ads/ad1.mp4", "categories": ["food"]},
        db=database,
    )
    yield database
    database.close()


class TestCatalogStorage:
    def test_add_sets_created_at(self, db):
        assert storage.get_video("vid1", db=db)["created_at"]

    def test_add_replaces_existing_record(self, db):
        storage.add_ad(
            {"id": "ad1", "user_id": "u1", "blob_ref": "ads/ad1-v2.mp4", "categories": []},
            db=db,
        )

        assert len(db.table("ads").all()) == 1
        assert storage.get_ad("ad1", db=db)["blob_ref"] == "ads/ad1-v2.mp4"

    def test_videos_and_ads_are_separate(self, db):
        assert storage.get_ad("vid1", db=db) is None
        assert storage.get_video("ad1", db=db) is None

    def test_missing_returns_none(self, db):
        assert storage.get_video("nope", db=db) is None


class TestResolveOwnership:
    def test_owner_resolves(self, db):
        assert storage.resolve_ownership("vid1", "u1", "video", db=db)
        assert storage.resolve_ownership("ad1", "u1", "ad", db=db)

    def test_other_user_does_not_resolve(self, db):
        assert not storage.resolve_ownership("vid1", "u2", "video", db=db)

    def test_unknown_asset_does_not_resolve(self, db):
        assert not storage.resolve_ownership("ad404", "u1", "ad", db=db)

    def test_unknown_kind_raises(self, db):
        with pytest.raises(ValueError, match="Unknown catalog kind"):
            storage.resolve_ownership("vid1", "u1", "podcast", db=db)
