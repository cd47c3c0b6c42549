"""Pydantic models for content analysis."""

from pydantic import BaseModel, Field

from retrocast.features.matching.models import BreakPoint
from retrocast.platform.schemas import CamelModel


# --- Gemini response schemas ---


class GeminiSceneBreak(BaseModel):
    start_time: str = Field(description='Scene start, formatted "M:SS" or "H:MM:SS".')
    end_time: str = Field(description='Scene end, formatted "M:SS" or "H:MM:SS".')
    description: str = Field(description="Brief description of the scene content.")


class GeminiInsertionPoint(BaseModel):
    timestamp: str = Field(description='Insertion time, formatted "M:SS" or "H:MM:SS".')
    priority: int = Field(description="Priority score 1-10, where 10 is an ideal spot.")
    reason: str = Field(description="Why this is a good insertion point.")
    suggested_categories: list[str] = Field(
        default_factory=list,
        description="Ad categories that would suit this moment.",
    )


class GeminiVideoAnalysis(BaseModel):
    """Structured output schema for the video analysis response."""

    scene_breaks: list[GeminiSceneBreak] = Field(
        description="5-10 natural scene transitions or major content shifts."
    )
    ad_insertion_points: list[GeminiInsertionPoint] = Field(
        description="2-5 optimal locations to insert advertisements."
    )
    video_summary: str = Field(
        description="One sentence describing the overall video content."
    )
    categories: list[str] = Field(
        default_factory=list,
        description="Lower-case content categories, e.g. automotive, food, gaming.",
    )
    sentiment: str = Field(
        default="neutral",
        description="Overall sentiment: positive, neutral, negative or mixed.",
    )


# --- Domain result ---


class SceneBreak(CamelModel):
    start_seconds: float
    end_seconds: float
    description: str = ""


class AnalysisResult(CamelModel):
    """Analyzer output in seconds, break points sorted by priority (highest first)."""

    scene_breaks: list[SceneBreak] = []
    break_points: list[BreakPoint] = []
    summary: str = ""
    categories: list[str] = []
    sentiment: str | None = None


# --- Ad creative analysis ---


class GeminiAdAnalysis(BaseModel):
    """Structured output schema for the ad creative analysis response."""

    categories: list[str] = Field(
        description=(
            "Product or service categories, chosen from: automotive, food, beverage, "
            "technology, fashion, home, health, entertainment, finance, travel, "
            "education, retail, sports, gaming, beauty, pets, kids, business."
        )
    )
    tone: str = Field(
        description=(
            "Emotional tone: humorous, serious, nostalgic, exciting, calm, "
            "informative, dramatic or playful."
        )
    )
    era_style: str = Field(
        description=(
            "Production era the ad evokes: 1950s, 1960s, 1970s, 1980s, 1990s, "
            "2000s, modern-retro or modern."
        )
    )
    keywords: list[str] = Field(
        default_factory=list,
        description="5-10 keywords describing the ad content, product or theme.",
    )
    transcript: str = Field(default="", description="All spoken words in the ad.")
    brand_name: str | None = Field(
        default=None, description="The advertised brand, or null if unknown."
    )
    energy_level: int = Field(
        default=5,
        description="Intensity 1-10: 1-3 calm, 4-6 moderate, 7-10 fast-paced.",
    )


class AdMetadata(CamelModel):
    """Matching metadata derived from an ad creative."""

    categories: list[str] = []
    tone: str | None = None
    era_style: str | None = None
    energy_level: int = 5
    keywords: list[str] = []
    transcript: str = ""
    brand_name: str | None = None
