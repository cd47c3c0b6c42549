"""Unit tests for the blob store backends."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from retrocast.platform.blob_store import LocalBlobStore, S3BlobStore
from retrocast.platform.errors import ExternalServiceError


class TestLocalBlobStore:
    @pytest.fixture
    def store(self, tmp_path):
        root = tmp_path / "blobs"
        (root / "uploads" / "u1").mkdir(parents=True)
        (root / "uploads" / "u1" / "clip.mp4").write_bytes(b"clip")
        return LocalBlobStore(root)

    def test_download_copies_into_dest(self, store, tmp_path):
        dest = tmp_path / "work"
        dest.mkdir()

        path = store.download("uploads/u1/clip.mp4", dest)

        assert path == dest / "clip.mp4"
        assert path.read_bytes() == b"clip"

    def test_download_missing_raises(self, store, tmp_path):
        with pytest.raises(ExternalServiceError, match="Blob not found"):
            store.download("uploads/u1/nope.mp4", tmp_path)

    def test_upload_creates_key_path(self, store, tmp_path):
        src = tmp_path / "final.mp4"
        src.write_bytes(b"final")

        ref = store.upload(src, "processed/u1/retro-crt-1.mp4")

        assert ref == "processed/u1/retro-crt-1.mp4"
        assert store.download(ref, tmp_path).read_bytes() == b"final"

    def test_refs_cannot_escape_root(self, store, tmp_path):
        with pytest.raises(ExternalServiceError, match="escapes"):
            store.download("../../etc/passwd", tmp_path)


class TestS3BlobStore:
    def test_requires_bucket(self):
        with pytest.raises(ExternalServiceError, match="S3_BUCKET"):
            S3BlobStore("")

    def test_download_and_upload_use_bucket(self, tmp_path):
        s3 = MagicMock()
        store = S3BlobStore("media", client=s3)

        path = store.download("uploads/u1/clip.mp4", tmp_path)
        ref = store.upload(tmp_path / "final.mp4", "processed/u1/out.mp4")

        assert path == tmp_path / "clip.mp4"
        s3.download_file.assert_called_once_with("media", "uploads/u1/clip.mp4", str(path))
        assert ref == "processed/u1/out.mp4"
        args, kwargs = s3.upload_file.call_args
        assert args == (str(tmp_path / "final.mp4"), "media", "processed/u1/out.mp4")
        assert kwargs["ExtraArgs"] == {"ContentType": "video/mp4"}

    def test_client_errors_are_wrapped(self, tmp_path):
        s3 = MagicMock()
        s3.download_file.side_effect = ClientError(
            {"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject"
        )
        store = S3BlobStore("media", client=s3)

        with pytest.raises(ExternalServiceError, match="Failed to download"):
            store.download("uploads/u1/clip.mp4", tmp_path)
