"""Catalog entities: registered source videos and ad assets."""

from pydantic import Field

from retrocast.platform.schemas import CamelModel


class VideoAsset(CamelModel):
    id: str
    user_id: str
    blob_ref: str
    title: str = ""


class AdAsset(CamelModel):
    """An ad creative plus the metadata the matcher scores against."""

    id: str
    user_id: str
    blob_ref: str
    title: str = ""
    categories: list[str] = []
    tone: str | None = None
    era_style: str | None = None
    energy_level: int | None = Field(default=None, ge=1, le=10)
    duration_seconds: float | None = None
    keywords: list[str] = []
    transcript: str = ""
    brand_name: str | None = None
    analysis_status: str | None = None
    analyzed_at: str | None = None
