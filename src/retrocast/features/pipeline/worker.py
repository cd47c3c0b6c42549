"""MediaPipelineWorker: runs the ordered stages of one delivered task.

Stages run strictly in sequence inside a scratch workspace that is removed
on every exit path. Any failure marks the job FAILED and stops; nothing is
retried and nothing is uploaded after a failure.
"""

import uuid
from datetime import datetime, timezone
from pathlib import Path

from retrocast.features.analysis.logic import format_insertion_points
from retrocast.features.analysis.models import AnalysisResult
from retrocast.features.jobs.models import ProcessingStage, is_terminal
from retrocast.features.jobs.tracker import JobStatusTracker
from retrocast.features.matching import logic as matching
from retrocast.features.matching.models import AdCandidate, ScheduleItem, VideoProfile
from retrocast.features.pipeline.models import OutcomeStatus, PipelineOutcome, WorkerPayload
from retrocast.features.pipeline.styles import StyleProfile
from retrocast.features.pipeline.workspace import scratch_workspace
from retrocast.platform.errors import NotFoundError
from retrocast.platform.logging_config import get_logger, job_context
from retrocast.platform.protocols import (
    BlobStore,
    CatalogLookup,
    ContentAnalyzer,
    ResultStoragePort,
    Transcoder,
)

logger = get_logger(__name__)

_MAX_ERROR_CHARS = 4000


def output_key(user_id: str, style: StyleProfile) -> str:
    return f"processed/{user_id}/retro-{StyleProfile(style).value.lower()}-{uuid.uuid4()}.mp4"


def _asset_dir(workdir: Path, name: str) -> Path:
    path = workdir / name
    path.mkdir()
    return path


def to_ad_candidate(record: dict) -> AdCandidate:
    """Snapshot a catalog ad record for one matching run."""
    return AdCandidate(
        id=record["id"],
        categories=frozenset(c.lower() for c in record.get("categories") or []),
        tone=record.get("tone"),
        era_style=record.get("era_style"),
        energy_level=record.get("energy_level"),
        duration_seconds=record.get("duration_seconds"),
    )


def to_video_profile(video_id: str, analysis: AnalysisResult, duration: float) -> VideoProfile:
    """Build the matcher's view of the video; break points outside it are dropped."""
    inside = tuple(
        bp for bp in analysis.break_points if 0 < bp.timestamp_seconds < duration
    )
    return VideoProfile(
        video_id=video_id,
        categories=frozenset(analysis.categories),
        sentiment=analysis.sentiment,
        duration_seconds=duration,
        break_points=inside,
    )


class MediaPipelineWorker:
    def __init__(
        self,
        tracker: JobStatusTracker,
        catalog: CatalogLookup,
        blob_store: BlobStore,
        analyzer: ContentAnalyzer,
        transcoder: Transcoder,
        results: ResultStoragePort,
        temp_dir: str | Path,
        max_ads: int = 3,
    ):
        self._tracker = tracker
        self._catalog = catalog
        self._blobs = blob_store
        self._analyzer = analyzer
        self._transcoder = transcoder
        self._results = results
        self._temp_dir = Path(temp_dir)
        self._max_ads = max_ads

    def run(self, payload: WorkerPayload) -> PipelineOutcome:
        """Execute the pipeline for one task. Never raises for pipeline failures."""
        job_id, user_id = payload.job_id, payload.user_id

        with job_context(job_id, user_id):
            try:
                existing = self._tracker.get_status(job_id)
                if existing is not None and is_terminal(existing.get("stage")):
                    logger.info("worker_task_skipped", stage=existing.get("stage"))
                    return PipelineOutcome(job_id=job_id, status=OutcomeStatus.SKIPPED)

                logger.info("worker_task_started")
                with scratch_workspace(self._temp_dir, user_id, job_id) as workdir:
                    storage_ref = self._execute(payload, workdir)
                self._tracker.mark_completed(job_id, user_id)
            except Exception as exc:
                message = (str(exc) or exc.__class__.__name__)[:_MAX_ERROR_CHARS]
                logger.exception("worker_task_failed")
                self._record_failure(job_id, user_id, message)
                return PipelineOutcome(job_id=job_id, status=OutcomeStatus.FAILED, error=message)

            logger.info("worker_task_completed", storage_ref=storage_ref)
        return PipelineOutcome(
            job_id=job_id, status=OutcomeStatus.COMPLETED, storage_ref=storage_ref
        )

    def _record_failure(self, job_id: str, user_id: str, message: str) -> None:
        # The status store may be the thing that failed; the outcome is still FAILED
        try:
            self._tracker.mark_failed(job_id, user_id, message)
        except Exception:
            logger.exception("worker_failure_not_recorded")

    # --- stages ---

    def _stage(self, payload: WorkerPayload, stage: ProcessingStage, info: str, progress: int) -> None:
        self._tracker.update_status(payload.job_id, payload.user_id, stage, info, progress)

    def _execute(self, payload: WorkerPayload, workdir: Path) -> str:
        style = StyleProfile(payload.style_profile)

        self._stage(payload, ProcessingStage.DOWNLOADING, "Downloading video...", 5)
        video_path, ads = self._download(payload, workdir)

        self._stage(payload, ProcessingStage.ANALYZING, "Analyzing video with AI...", 15)
        analysis = self._analyzer.analyze(video_path, style)
        self._stage(
            payload,
            ProcessingStage.ANALYZING,
            f"Analysis complete. Found {len(analysis.break_points)} ad insertion points",
            25,
        )

        self._stage(
            payload, ProcessingStage.APPLYING_EFFECTS, f"Applying {style.value} effects...", 40
        )
        current = self._transcoder.apply_style(video_path, style, workdir)

        schedule: list[ScheduleItem] = []
        if ads and analysis.break_points:
            current, schedule = self._insert_ads(payload, current, ads, analysis, workdir)

        self._stage(
            payload, ProcessingStage.ADDING_AUDIO_EFFECTS, "Adding vintage audio effects...", 70
        )
        current = self._transcoder.add_audio_effects(current, workdir)

        self._stage(payload, ProcessingStage.UPLOADING, "Uploading processed video...", 85)
        key = output_key(payload.user_id, style)
        storage_ref = self._blobs.upload(current, key)

        self._results.save_result({
            "id": str(uuid.uuid4()),
            "job_id": payload.job_id,
            "user_id": payload.user_id,
            "source_video_ref": payload.video_ref,
            "style_profile": style.value,
            "file_name": Path(key).name,
            "storage_ref": storage_ref,
            "insertion_points": format_insertion_points(analysis.break_points),
            "schedule": [item.model_dump() for item in schedule],
            "summary": analysis.summary,
            "processed_at": datetime.now(timezone.utc).isoformat(),
        })
        return storage_ref

    def _download(
        self, payload: WorkerPayload, workdir: Path
    ) -> tuple[Path, list[tuple[dict, Path]]]:
        video = self._catalog.get_video(payload.video_ref)
        if video is None:
            raise NotFoundError(f"Video not found: {payload.video_ref}")
        # Each asset gets its own folder; blob refs may share a file name
        video_path = self._blobs.download(video["blob_ref"], _asset_dir(workdir, "video"))

        ads = []
        for i, ad_ref in enumerate(payload.ad_refs):
            ad = self._catalog.get_ad(ad_ref)
            if ad is None:
                raise NotFoundError(f"Ad not found: {ad_ref}")
            ad_path = self._blobs.download(ad["blob_ref"], _asset_dir(workdir, f"ad-{i}"))
            ads.append((ad, ad_path))

        logger.info("assets_downloaded", ads=len(ads))
        return video_path, ads

    def _insert_ads(
        self,
        payload: WorkerPayload,
        styled: Path,
        ads: list[tuple[dict, Path]],
        analysis: AnalysisResult,
        workdir: Path,
    ) -> tuple[Path, list[ScheduleItem]]:
        self._stage(payload, ProcessingStage.INSERTING_ADS, "Inserting retro commercials...", 55)

        duration = self._transcoder.probe_duration(styled)
        profile = to_video_profile(payload.video_ref, analysis, duration)
        ranked = matching.rank([to_ad_candidate(record) for record, _ in ads], profile)
        schedule = matching.build_schedule(ranked, profile.break_points, self._max_ads)

        if not schedule:
            logger.info("ad_schedule_empty")
            return styled, schedule

        paths_by_id = {record["id"]: path for record, path in ads}
        output = self._transcoder.insert_ads(
            styled,
            [paths_by_id[item.ad_id] for item in schedule],
            [item.insert_at_seconds for item in schedule],
            workdir,
        )
        logger.info(
            "ad_schedule_applied",
            ads=[item.ad_id for item in schedule],
            at=[item.insert_at_seconds for item in schedule],
        )
        return output, schedule


def build_worker() -> MediaPipelineWorker:
    """Wire a worker from the configured backends."""
    from retrocast.features.analysis.gemini_adapter import GeminiContentAnalyzer
    from retrocast.features.jobs.tracker import get_tracker
    from retrocast.features.pipeline.ffmpeg import FfmpegTranscoder
    from retrocast.platform.config import get_settings
    from retrocast.platform.storage_factory import (
        get_blob_store,
        get_catalog,
        get_result_storage,
    )

    settings = get_settings()
    return MediaPipelineWorker(
        tracker=get_tracker(),
        catalog=get_catalog(),
        blob_store=get_blob_store(),
        analyzer=GeminiContentAnalyzer(),
        transcoder=FfmpegTranscoder(),
        results=get_result_storage(),
        temp_dir=settings.temp_dir,
        max_ads=settings.max_ads_per_video,
    )
