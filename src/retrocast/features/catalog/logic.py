"""Catalog registration with optional AI-derived ad metadata."""

import tempfile
from datetime import datetime, timezone
from pathlib import Path

from retrocast.features.catalog.models import AdAsset
from retrocast.platform.errors import ExternalServiceError
from retrocast.platform.logging_config import get_logger
from retrocast.platform.protocols import AdAnalyzer, BlobStore, CatalogLookup

logger = get_logger(__name__)

# Fields the analyzer may fill; values given at registration win
_ANALYZED_FIELDS = ("categories", "tone", "era_style", "energy_level")


def merge_ad_metadata(record: dict, metadata: dict) -> dict:
    """Fill the matching fields *record* leaves empty from *metadata*."""
    merged = dict(record)
    for field in _ANALYZED_FIELDS:
        if not merged.get(field):
            merged[field] = metadata.get(field)
    merged["keywords"] = metadata.get("keywords") or []
    merged["transcript"] = metadata.get("transcript") or ""
    merged["brand_name"] = metadata.get("brand_name")
    return merged


def register_ad(
    catalog: CatalogLookup,
    record: dict,
    blob_store: BlobStore | None = None,
    analyzer: AdAnalyzer | None = None,
    temp_dir: str | Path | None = None,
) -> dict:
    """Validate and store an ad; with an analyzer, derive its metadata first.

    The creative is fetched from the blob store into a throwaway directory and
    analyzed there. If analysis fails the ad is still stored, with
    ``analysis_status`` set to ``failed``, and the error is re-raised.
    """
    ad = AdAsset.model_validate(record).model_dump()
    if analyzer is None:
        return catalog.add_ad(ad)
    if blob_store is None:
        raise ValueError("A blob store is required to analyze an ad")

    if temp_dir is not None:
        Path(temp_dir).mkdir(parents=True, exist_ok=True)
    try:
        with tempfile.TemporaryDirectory(prefix="ad-analysis-", dir=temp_dir) as workdir:
            local = blob_store.download(ad["blob_ref"], Path(workdir))
            metadata = analyzer.analyze_ad(local)
    except ExternalServiceError as exc:
        logger.error("ad_analysis_failed", ad_id=ad["id"], error=str(exc))
        catalog.add_ad({**ad, "analysis_status": "failed"})
        raise

    ad = merge_ad_metadata(ad, metadata.model_dump())
    ad["analysis_status"] = "completed"
    ad["analyzed_at"] = datetime.now(timezone.utc).isoformat()
    logger.info(
        "ad_analyzed",
        ad_id=ad["id"],
        categories=ad["categories"],
        tone=ad["tone"],
        era=ad["era_style"],
        energy=ad["energy_level"],
    )
    return catalog.add_ad(ad)
