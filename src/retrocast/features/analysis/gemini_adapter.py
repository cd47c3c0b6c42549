"""Gemini analysis adapters via the google-genai SDK.

Both upload a clip through the Files API, wait for it to become ACTIVE and ask
for structured JSON. The content analyzer wants scene breaks and ad insertion
points for a source video; the ad analyzer wants matching metadata for an ad
creative.
"""

import time
from pathlib import Path
from typing import Callable

from google import genai
from pydantic import BaseModel

from retrocast.features.analysis.logic import to_ad_metadata, to_analysis_result
from retrocast.features.analysis.models import (
    AdMetadata,
    AnalysisResult,
    GeminiAdAnalysis,
    GeminiVideoAnalysis,
)
from retrocast.features.pipeline.styles import StyleProfile
from retrocast.platform.config import get_settings
from retrocast.platform.errors import ExternalServiceError
from retrocast.platform.logging_config import get_logger

logger = get_logger(__name__)

ANALYSIS_SYSTEM = (
    "You are a video analysis assistant specialized in identifying optimal "
    "advertisement insertion points for retro TV-style video productions."
)

ANALYSIS_PROMPT = (
    "Analyze this video and provide:\n\n"
    "1. Scene Breaks: identify 5-10 natural scene transitions or major content "
    'shifts, each with start and end timestamps ("M:SS" or "H:MM:SS") and a '
    "brief description.\n"
    "2. Ad Insertion Points: identify 2-5 optimal locations to insert "
    "advertisements. Prefer natural pauses or transitions, never cut "
    "mid-sentence or mid-action, keep ads well spaced, and place them after "
    "hook moments or before a climax. For each give a timestamp, a priority "
    "score (1-10, where 10 = ideal spot), a brief reason and the ad categories "
    "that would suit the moment.\n"
    "3. Video Summary: one sentence describing the overall video content.\n"
    "4. Categories: lower-case content categories of the whole video.\n"
    "5. Sentiment: one of positive, neutral, negative or mixed.\n\n"
    "The video will be transformed with retro {style} effects to look like "
    "80s/90s TV content. Consider how commercial breaks worked in that era, "
    "typically every 5-8 minutes of content."
)

AD_ANALYSIS_SYSTEM = (
    "You are an advertising analyst who catalogues TV commercials so they can "
    "be matched to the programmes they air in."
)

AD_ANALYSIS_PROMPT = (
    "Analyze this advertisement video and extract metadata for ad matching:\n\n"
    "1. Categories: the product or service categories the ad belongs to.\n"
    "2. Tone: the emotional tone of the ad.\n"
    "3. Era Style: the visual and production era the ad evokes.\n"
    "4. Keywords: 5-10 keywords describing the ad content, product or theme.\n"
    "5. Transcript: every spoken word in the ad.\n"
    "6. Brand Name: the advertised brand if identifiable, otherwise null.\n"
    "7. Energy Level: intensity from 1 to 10, where 1-3 is calm, 4-6 moderate "
    "and 7-10 fast-paced."
)


def build_prompt(style: StyleProfile) -> str:
    return ANALYSIS_PROMPT.format(style=StyleProfile(style).value)


def _state_name(file) -> str:
    state = getattr(file, "state", None)
    return getattr(state, "name", str(state))


class _GeminiFileModel:
    """Shared Files API flow: upload, wait for ACTIVE, structured generate, delete.

    ``client`` and ``sleep`` are injectable for tests.
    """

    def __init__(
        self,
        client: genai.Client | None = None,
        model: str | None = None,
        poll_attempts: int | None = None,
        poll_interval: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        settings = get_settings()
        self._client = client
        self._model = model or settings.gemini_model
        self._poll_attempts = poll_attempts or settings.analyzer_poll_attempts
        self._poll_interval = (
            poll_interval if poll_interval is not None else settings.analyzer_poll_interval
        )
        self._sleep = sleep

    def _get_client(self) -> genai.Client:
        if self._client is None:
            api_key = get_settings().google_api_key
            if not api_key:
                raise ExternalServiceError("GOOGLE_API_KEY environment variable is not set.")
            self._client = genai.Client(api_key=api_key)
        return self._client

    def _wait_until_active(self, client: genai.Client, uploaded):
        """Poll the uploaded file until ACTIVE; bounded by poll_attempts."""
        current = uploaded
        for attempt in range(1, self._poll_attempts + 1):
            state = _state_name(current)
            if state == "ACTIVE":
                return current
            if state == "FAILED":
                raise ExternalServiceError(f"Video processing failed for file {uploaded.name}")
            logger.debug("gemini_file_pending", file=uploaded.name, attempt=attempt, state=state)
            self._sleep(self._poll_interval)
            current = client.files.get(name=uploaded.name)

        if _state_name(current) == "ACTIVE":
            return current
        raise ExternalServiceError(
            f"Video file {uploaded.name} was not ready after {self._poll_attempts} attempts"
        )

    def _generate_from_file(
        self, path: Path, prompt: str, system: str, schema: type[BaseModel], label: str
    ):
        """Upload *path* and return the parsed *schema* instance for *prompt*."""
        client = self._get_client()

        try:
            uploaded = client.files.upload(file=str(path))
        except Exception as exc:
            logger.error("gemini_upload_failed", error=str(exc))
            raise ExternalServiceError(f"Gemini upload failed: {exc}") from exc

        try:
            active = self._wait_until_active(client, uploaded)

            try:
                response = client.models.generate_content(
                    model=self._model,
                    contents=[active, prompt],
                    config=genai.types.GenerateContentConfig(
                        system_instruction=system,
                        response_mime_type="application/json",
                        response_schema=schema,
                    ),
                )
            except Exception as exc:
                logger.error("gemini_generate_failed", kind=label, error=str(exc))
                raise ExternalServiceError(f"Gemini {label} failed: {exc}") from exc

            raw = response.parsed
            if raw is None:
                raise ExternalServiceError(
                    f"Gemini returned unparseable response: {response.text}"
                )
            return raw
        finally:
            self._delete_quietly(client, uploaded.name)

    def _delete_quietly(self, client: genai.Client, name: str) -> None:
        try:
            client.files.delete(name=name)
        except Exception as exc:
            logger.warning("gemini_file_delete_failed", file=name, error=str(exc))


class GeminiContentAnalyzer(_GeminiFileModel):
    """ContentAnalyzer backed by Gemini."""

    def analyze(self, video_path: Path, style: StyleProfile) -> AnalysisResult:
        logger.info(
            "gemini_analysis_started",
            model=self._model,
            path=str(video_path),
            style=StyleProfile(style).value,
        )
        raw = self._generate_from_file(
            video_path, build_prompt(style), ANALYSIS_SYSTEM, GeminiVideoAnalysis, "analysis"
        )
        result = to_analysis_result(raw)
        logger.info(
            "gemini_analysis_success",
            scenes=len(result.scene_breaks),
            break_points=len(result.break_points),
            categories=result.categories,
        )
        return result


class GeminiAdAnalyzer(_GeminiFileModel):
    """Derives an ad creative's matching metadata with Gemini."""

    def analyze_ad(self, ad_path: Path) -> AdMetadata:
        logger.info("gemini_ad_analysis_started", model=self._model, path=str(ad_path))
        raw = self._generate_from_file(
            ad_path, AD_ANALYSIS_PROMPT, AD_ANALYSIS_SYSTEM, GeminiAdAnalysis, "ad analysis"
        )
        metadata = to_ad_metadata(raw)
        logger.info(
            "gemini_ad_analysis_success",
            categories=metadata.categories,
            tone=metadata.tone,
            era=metadata.era_style,
            energy=metadata.energy_level,
        )
        return metadata
