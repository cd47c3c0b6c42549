"""Unit tests for ad registration with fake blob store and analyzer."""

from pathlib import Path

import pytest
from tinydb import TinyDB
from tinydb.storages import MemoryStorage

from retrocast.features.analysis.models import AdMetadata
from retrocast.features.catalog.logic import merge_ad_metadata, register_ad
from retrocast.platform.errors import ExternalServiceError
from retrocast.platform.tinydb_catalog_adapter import TinyDBCatalogAdapter


class FakeBlobStore:
    def __init__(self):
        self.downloaded_to: list[Path] = []

    def download(self, ref, dest_dir):
        path = Path(dest_dir) / Path(ref).name
        path.write_bytes(b"ad creative")
        self.downloaded_to.append(path)
        return path

    def upload(self, path, key):
        raise AssertionError("registration never uploads")


class FakeAdAnalyzer:
    def __init__(self, metadata=None, error=None):
        self._metadata = metadata
        self._error = error
        self.seen: list[bytes] = []

    def analyze_ad(self, ad_path):
        self.seen.append(Path(ad_path).read_bytes())
        if self._error is not None:
            raise self._error
        return self._metadata


METADATA = AdMetadata(
    categories=["automotive"],
    tone="exciting",
    era_style="1980s",
    energy_level=8,
    keywords=["car", "turbo"],
    transcript="Feel the power.",
    brand_name="Turbo Motors",
)

RECORD = {"id": "ad1", "user_id": "u1", "blob_ref": "ads/u1/car.mp4"}


@pytest.fixture
def catalog():
    db = TinyDB(storage=MemoryStorage)
    yield TinyDBCatalogAdapter(db)
    db.close()


class TestRegisterAd:
    def test_without_analyzer_stores_record_as_given(self, catalog):
        ad = register_ad(catalog, {**RECORD, "categories": ["food"], "tone": "calm"})

        stored = catalog.get_ad("ad1")
        assert stored["categories"] == ["food"]
        assert stored["tone"] == "calm"
        assert stored["analysis_status"] is None
        assert ad["id"] == "ad1"

    def test_analysis_fills_metadata(self, catalog, tmp_path):
        blobs = FakeBlobStore()
        analyzer = FakeAdAnalyzer(metadata=METADATA)

        register_ad(catalog, RECORD, blob_store=blobs, analyzer=analyzer, temp_dir=tmp_path)

        stored = catalog.get_ad("ad1")
        assert stored["categories"] == ["automotive"]
        assert stored["tone"] == "exciting"
        assert stored["era_style"] == "1980s"
        assert stored["energy_level"] == 8
        assert stored["keywords"] == ["car", "turbo"]
        assert stored["brand_name"] == "Turbo Motors"
        assert stored["analysis_status"] == "completed"
        assert stored["analyzed_at"]
        assert analyzer.seen == [b"ad creative"]

    def test_downloaded_creative_is_removed(self, catalog, tmp_path):
        blobs = FakeBlobStore()

        register_ad(
            catalog, RECORD, blob_store=blobs, analyzer=FakeAdAnalyzer(metadata=METADATA),
            temp_dir=tmp_path,
        )

        [path] = blobs.downloaded_to
        assert not path.exists()
        assert list(tmp_path.iterdir()) == []

    def test_given_values_win_over_analysis(self, catalog, tmp_path):
        record = {**RECORD, "categories": ["food"], "energy_level": 2}

        register_ad(
            catalog, record, blob_store=FakeBlobStore(),
            analyzer=FakeAdAnalyzer(metadata=METADATA), temp_dir=tmp_path,
        )

        stored = catalog.get_ad("ad1")
        assert stored["categories"] == ["food"]
        assert stored["energy_level"] == 2
        assert stored["tone"] == "exciting"

    def test_failed_analysis_stores_ad_and_raises(self, catalog, tmp_path):
        analyzer = FakeAdAnalyzer(error=ExternalServiceError("Gemini ad analysis failed: quota"))

        with pytest.raises(ExternalServiceError, match="quota"):
            register_ad(
                catalog, RECORD, blob_store=FakeBlobStore(), analyzer=analyzer, temp_dir=tmp_path
            )

        stored = catalog.get_ad("ad1")
        assert stored["analysis_status"] == "failed"
        assert stored["categories"] == []

    def test_analyzer_needs_blob_store(self, catalog):
        with pytest.raises(ValueError, match="blob store"):
            register_ad(catalog, RECORD, analyzer=FakeAdAnalyzer(metadata=METADATA))


def test_merge_keeps_given_fields():
    merged = merge_ad_metadata(
        {"id": "ad1", "tone": "calm", "categories": []},
        METADATA.model_dump(),
    )

    assert merged["tone"] == "calm"
    assert merged["categories"] == ["automotive"]
    assert merged["transcript"] == "Feel the power."
