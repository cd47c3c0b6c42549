"""Process-wide settings read from the environment.

A ``.env`` file in the working directory is loaded first (python-dotenv), so
local development only needs that file. Settings are read once and cached;
tests that change the environment call ``get_settings.cache_clear()``.
"""

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    env: str = "production"
    log_level: str = "INFO"
    jwt_secret: str | None = None

    # Persistence
    storage_backend: str = "tinydb"
    db_path: str = "retrocast.db"

    # Blob storage
    blob_backend: str = "local"
    blob_root: str = "blobs"
    s3_bucket: str = ""
    s3_endpoint_url: str | None = None
    s3_region: str = "us-east-1"
    s3_access_key: str | None = None
    s3_secret_key: str | None = None

    # Task queue / worker identity
    task_queue_backend: str = "local"
    gcp_project_id: str = ""
    gcp_location: str = "us-central1"
    gcp_task_queue: str = ""
    worker_base_url: str = ""
    worker_service_account: str = ""

    # Content analysis
    google_api_key: str | None = None
    gemini_model: str = "gemini-2.0-flash-001"
    analyzer_poll_attempts: int = 60
    analyzer_poll_interval: float = 1.0

    # Pipeline
    temp_dir: str = "/tmp/retrocast"
    max_ads_per_video: int = 3
    active_job_ttl_seconds: int = 6 * 60 * 60


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings from the environment once per process."""
    load_dotenv()
    defaults = Settings()
    return Settings(
        env=os.getenv("ENV", defaults.env),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level),
        jwt_secret=os.getenv("JWT_SECRET") or None,
        storage_backend=os.getenv("STORAGE_BACKEND", defaults.storage_backend),
        db_path=os.getenv("DB_PATH", defaults.db_path),
        blob_backend=os.getenv("BLOB_BACKEND", defaults.blob_backend),
        blob_root=os.getenv("BLOB_ROOT", defaults.blob_root),
        s3_bucket=os.getenv("S3_BUCKET", defaults.s3_bucket),
        s3_endpoint_url=os.getenv("S3_ENDPOINT_URL") or None,
        s3_region=os.getenv("S3_REGION", defaults.s3_region),
        s3_access_key=os.getenv("S3_ACCESS_KEY") or None,
        s3_secret_key=os.getenv("S3_SECRET_KEY") or None,
        task_queue_backend=os.getenv("TASK_QUEUE_BACKEND", defaults.task_queue_backend),
        gcp_project_id=os.getenv("GCP_PROJECT_ID", defaults.gcp_project_id),
        gcp_location=os.getenv("GCP_LOCATION", defaults.gcp_location),
        gcp_task_queue=os.getenv("GCP_TASK_QUEUE", defaults.gcp_task_queue),
        worker_base_url=os.getenv("WORKER_BASE_URL", defaults.worker_base_url),
        worker_service_account=os.getenv(
            "WORKER_SERVICE_ACCOUNT", defaults.worker_service_account
        ),
        google_api_key=os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY") or None,
        gemini_model=os.getenv("GEMINI_MODEL", defaults.gemini_model),
        analyzer_poll_attempts=_env_int(
            "ANALYZER_POLL_ATTEMPTS", defaults.analyzer_poll_attempts
        ),
        analyzer_poll_interval=_env_float(
            "ANALYZER_POLL_INTERVAL", defaults.analyzer_poll_interval
        ),
        temp_dir=os.getenv("TEMP_DIR", defaults.temp_dir),
        max_ads_per_video=_env_int("MAX_ADS_PER_VIDEO", defaults.max_ads_per_video),
        active_job_ttl_seconds=_env_int(
            "ACTIVE_JOB_TTL_SECONDS", defaults.active_job_ttl_seconds
        ),
    )
