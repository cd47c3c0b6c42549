"""ffmpeg / ffprobe wrappers.

Every transform writes a new uniquely named file into ``out_dir`` and returns
its path; inputs are never modified.
"""

import subprocess
import uuid
from pathlib import Path
from typing import Sequence

from retrocast.features.pipeline.styles import (
    StyleProfile,
    audio_filter_chain,
    video_filter_chain,
)
from retrocast.platform.errors import ExternalServiceError
from retrocast.platform.logging_config import get_logger

logger = get_logger(__name__)

# Keep error messages stored on jobs bounded
_MAX_ERROR_CHARS = 4000


def _out(out_dir: Path, prefix: str, suffix: str = ".mp4") -> Path:
    return Path(out_dir) / f"{prefix}-{uuid.uuid4()}{suffix}"


def run_ffmpeg(cmd: list[str], description: str) -> subprocess.CompletedProcess:
    """Run an ffmpeg/ffprobe command, raising ExternalServiceError on failure."""
    logger.info("ffmpeg_started", step=description, cmd=" ".join(cmd))
    try:
        result = subprocess.run(cmd, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    except subprocess.CalledProcessError as e:
        err = e.stderr.decode("utf-8", errors="ignore") if e.stderr else str(e)
        logger.error("ffmpeg_failed", step=description, returncode=e.returncode)
        raise ExternalServiceError(
            f"ffmpeg failed for {description} (exit {e.returncode}): {err[-_MAX_ERROR_CHARS:]}"
        ) from e
    except FileNotFoundError as e:
        raise ExternalServiceError(f"{cmd[0]} executable not found") from e
    logger.info("ffmpeg_completed", step=description)
    return result


def probe_duration(path: Path) -> float:
    """Return the container duration in seconds."""
    cmd = [
        "ffprobe",
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(path),
    ]
    result = run_ffmpeg(cmd, "probe duration")
    raw = result.stdout.decode("utf-8", errors="ignore").strip()
    try:
        return float(raw)
    except ValueError:
        raise ExternalServiceError(f"Could not read duration of {path}: {raw!r}")


def apply_style(src: Path, style: StyleProfile, out_dir: Path) -> Path:
    output = _out(out_dir, f"styled-{StyleProfile(style).value.lower()}")
    cmd = [
        "ffmpeg", "-y",
        "-i", str(src),
        "-vf", video_filter_chain(style),
        "-c:v", "libx264",
        "-preset", "fast",
        "-crf", "23",
        "-c:a", "copy",
        "-movflags", "+faststart",
        str(output),
    ]
    run_ffmpeg(cmd, "style effects")
    return output


def add_audio_effects(src: Path, out_dir: Path) -> Path:
    output = _out(out_dir, "audio-fx")
    cmd = [
        "ffmpeg", "-y",
        "-i", str(src),
        "-af", audio_filter_chain(),
        "-c:v", "copy",
        str(output),
    ]
    run_ffmpeg(cmd, "audio effects")
    return output


def extract_segment(
    video: Path, start: float, end: float, out_dir: Path, name: str
) -> Path:
    output = _out(out_dir, name)
    cmd = [
        "ffmpeg", "-y",
        "-i", str(video),
        "-ss", f"{start:.3f}",
        "-t", f"{end - start:.3f}",
        "-c:v", "libx264",
        "-preset", "ultrafast",
        "-crf", "23",
        "-c:a", "aac",
        "-b:a", "128k",
        "-movflags", "+faststart",
        str(output),
    ]
    run_ffmpeg(cmd, "extract segment")
    return output


def _concat_line(path: Path) -> str:
    # concat demuxer quoting: close the quote, escape, reopen
    escaped = str(path).replace("'", "'\\''")
    return f"file '{escaped}'\n"


def concatenate(videos: Sequence[Path], out_dir: Path) -> Path:
    """Re-encode *videos* back to back into one file."""
    concat_list = _out(out_dir, "concat", ".txt")
    output = _out(out_dir, "concatenated")
    concat_list.write_text("".join(_concat_line(v) for v in videos), encoding="utf-8")

    cmd = [
        "ffmpeg", "-y",
        "-f", "concat",
        "-safe", "0",
        "-i", str(concat_list),
        "-c:v", "libx264",
        "-preset", "fast",
        "-crf", "23",
        "-c:a", "aac",
        "-b:a", "192k",
        "-movflags", "+faststart",
        str(output),
    ]
    try:
        run_ffmpeg(cmd, "concatenate videos")
    finally:
        concat_list.unlink(missing_ok=True)
    return output


def insert_ads(
    src: Path,
    ad_paths: Sequence[Path],
    timestamps: Sequence[float],
    out_dir: Path,
    duration: float | None = None,
) -> Path:
    """Cut *src* at each timestamp and splice an ad into every cut.

    Only timestamps strictly inside the video are used. Ads are taken in
    order and cycled when there are more cuts than ads. Returns *src*
    unchanged when there is nothing to insert.
    """
    if not ad_paths or not timestamps:
        logger.info("ad_insertion_skipped", reason="no_ads_or_timestamps")
        return src

    if duration is None:
        duration = probe_duration(src)

    cuts = sorted(t for t in timestamps if 0 < t < duration)
    if not cuts:
        logger.info("ad_insertion_skipped", reason="no_valid_timestamps", duration=duration)
        return src

    segments: list[Path] = []
    last_end = 0.0
    for i, cut in enumerate(cuts):
        if cut > last_end:
            segments.append(extract_segment(src, last_end, cut, out_dir, f"seg-{i}"))
        segments.append(Path(ad_paths[i % len(ad_paths)]))
        last_end = cut

    if last_end < duration:
        segments.append(extract_segment(src, last_end, duration, out_dir, "seg-final"))

    logger.info("ads_inserted", cuts=len(cuts), segments=len(segments))
    return concatenate(segments, out_dir)


class FfmpegTranscoder:
    """Transcoder backed by the ffmpeg and ffprobe executables on PATH."""

    def probe_duration(self, path: Path) -> float:
        return probe_duration(path)

    def apply_style(self, src: Path, style: StyleProfile, out_dir: Path) -> Path:
        return apply_style(src, style, out_dir)

    def insert_ads(
        self,
        src: Path,
        ad_paths: Sequence[Path],
        timestamps: Sequence[float],
        out_dir: Path,
    ) -> Path:
        return insert_ads(src, ad_paths, timestamps, out_dir)

    def add_audio_effects(self, src: Path, out_dir: Path) -> Path:
        return add_audio_effects(src, out_dir)
