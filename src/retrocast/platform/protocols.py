"""I/O abstraction protocols for RetroCast.

Defines Protocol classes for external dependencies so the dispatcher and the
pipeline worker can be tested without real infrastructure. Production code
uses real implementations; tests pass fake implementations.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Protocol, Sequence

if TYPE_CHECKING:
    from retrocast.features.analysis.models import AdMetadata, AnalysisResult
    from retrocast.features.pipeline.models import WorkerPayload
    from retrocast.features.pipeline.styles import StyleProfile


class JobStatusStoragePort(Protocol):
    """Persisted job status records plus the per-user active-job marker."""

    def create_if_idle(
        self, user_id: str, record: dict, ttl_seconds: int
    ) -> dict | None:
        """Claim the user's active marker and insert *record* atomically.

        Returns the inserted record, or None if the marker already points at
        an in-flight job.
        """
        ...

    def upsert_job(self, record: dict) -> None: ...

    def get_job(self, job_id: str) -> dict | None: ...

    def get_latest_job(self, user_id: str) -> dict | None: ...

    def get_active_job(self, user_id: str, ttl_seconds: int) -> dict | None: ...

    def release_active(self, user_id: str, job_id: str) -> None: ...


class ResultStoragePort(Protocol):
    """Processed-video result entities."""

    def save_result(self, record: dict) -> None: ...

    def get_result_for_job(self, job_id: str) -> dict | None: ...


class CatalogLookup(Protocol):
    """Registered source videos and ad assets."""

    def resolve_ownership(self, ref: str, user_id: str, kind: str) -> bool:
        """True if *ref* of *kind* ("video" or "ad") exists and belongs to *user_id*."""
        ...

    def get_video(self, ref: str) -> dict | None: ...

    def get_ad(self, ref: str) -> dict | None: ...

    def add_video(self, record: dict) -> dict: ...

    def add_ad(self, record: dict) -> dict: ...


class BlobStore(Protocol):
    """Object storage for source assets and rendered output."""

    def download(self, ref: str, dest_dir: Path) -> Path:
        """Fetch *ref* into *dest_dir* and return the local path."""
        ...

    def upload(self, path: Path, key: str) -> str:
        """Store *path* under *key* and return its storage reference."""
        ...


class ContentAnalyzer(Protocol):
    """AI content analysis of a local video file."""

    def analyze(self, video_path: Path, style: "StyleProfile") -> "AnalysisResult": ...


class AdAnalyzer(Protocol):
    """AI metadata extraction for an ad creative."""

    def analyze_ad(self, ad_path: Path) -> "AdMetadata": ...


class Transcoder(Protocol):
    """Blocking media transforms; each returns the path of a new file."""

    def probe_duration(self, path: Path) -> float: ...

    def apply_style(self, src: Path, style: "StyleProfile", out_dir: Path) -> Path: ...

    def insert_ads(
        self,
        src: Path,
        ad_paths: Sequence[Path],
        timestamps: Sequence[float],
        out_dir: Path,
    ) -> Path: ...

    def add_audio_effects(self, src: Path, out_dir: Path) -> Path: ...


class TaskQueue(Protocol):
    """At-least-once delivery of worker payloads."""

    def enqueue(self, payload: "WorkerPayload") -> str:
        """Schedule the payload for execution and return the task name."""
        ...
