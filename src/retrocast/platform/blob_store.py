"""BlobStore implementations: local directory or S3-compatible bucket.

Refs are bucket-relative keys in both backends, e.g.
``uploads/<user_id>/clip.mp4``.
"""

import shutil
from pathlib import Path, PurePosixPath

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from retrocast.platform.config import get_settings
from retrocast.platform.errors import ExternalServiceError
from retrocast.platform.logging_config import get_logger

logger = get_logger(__name__)


def _local_name(ref: str) -> str:
    name = PurePosixPath(ref).name
    if not name:
        raise ExternalServiceError(f"Invalid blob reference: {ref!r}")
    return name


class LocalBlobStore:
    """Stores blobs as plain files under ``root``."""

    def __init__(self, root: str | Path):
        self._root = Path(root).resolve()

    def _path_for(self, ref: str) -> Path:
        path = (self._root / ref).resolve()
        if not path.is_relative_to(self._root):
            raise ExternalServiceError(f"Blob reference escapes the store root: {ref!r}")
        return path

    def download(self, ref: str, dest_dir: Path) -> Path:
        source = self._path_for(ref)
        if not source.is_file():
            raise ExternalServiceError(f"Blob not found: {ref}")
        target = Path(dest_dir) / _local_name(ref)
        shutil.copyfile(source, target)
        logger.debug("blob_downloaded", ref=ref, dest=str(target))
        return target

    def upload(self, path: Path, key: str) -> str:
        target = self._path_for(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            shutil.copyfile(path, target)
        except OSError as exc:
            raise ExternalServiceError(f"Failed to store {key}: {exc}") from exc
        logger.info("blob_uploaded", key=key)
        return key


def get_s3_client(settings=None):
    """SDK client for server-side upload/download."""
    settings = settings or get_settings()
    session = boto3.session.Session(
        aws_access_key_id=settings.s3_access_key,
        aws_secret_access_key=settings.s3_secret_key,
        region_name=settings.s3_region,
    )
    return session.client(
        "s3",
        endpoint_url=settings.s3_endpoint_url,  # e.g. http://127.0.0.1:9000 for MinIO
        config=BotoConfig(
            s3={"addressing_style": "path"},
            signature_version="s3v4",
        ),
    )


class S3BlobStore:
    """Stores blobs in an S3 (or MinIO) bucket."""

    def __init__(self, bucket: str, client=None):
        if not bucket:
            raise ExternalServiceError("S3_BUCKET must be set for the s3 blob backend")
        self._bucket = bucket
        self._client = client

    def _s3(self):
        if self._client is None:
            self._client = get_s3_client()
        return self._client

    def download(self, ref: str, dest_dir: Path) -> Path:
        target = Path(dest_dir) / _local_name(ref)
        try:
            self._s3().download_file(self._bucket, ref, str(target))
        except (BotoCoreError, ClientError) as exc:
            raise ExternalServiceError(f"Failed to download {ref}: {exc}") from exc
        logger.debug("blob_downloaded", bucket=self._bucket, ref=ref)
        return target

    def upload(self, path: Path, key: str) -> str:
        try:
            self._s3().upload_file(
                str(path), self._bucket, key, ExtraArgs={"ContentType": "video/mp4"}
            )
        except (BotoCoreError, ClientError, S3UploadFailedError) as exc:
            raise ExternalServiceError(f"Failed to upload {key}: {exc}") from exc
        logger.info("blob_uploaded", bucket=self._bucket, key=key)
        return key

