"""Ad matching preview endpoint.

Prefix: ``/matching``
"""

from fastapi import APIRouter, Depends

from retrocast.features.auth.dependencies import get_current_user
from retrocast.features.matching import logic
from retrocast.features.matching.models import ScheduleRequest, ScheduleResponse
from retrocast.platform.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/matching", tags=["matching"])


@router.post("/schedule", response_model=ScheduleResponse)
def preview_schedule(request: ScheduleRequest, user: dict = Depends(get_current_user)):
    """Rank the given ads against a video profile and build the ad schedule."""
    matches = logic.rank(request.ads, request.video)
    schedule = logic.build_schedule(matches, request.video.break_points, request.max_ads)
    logger.info(
        "schedule_previewed",
        user_id=user["sub"],
        ads=len(request.ads),
        break_points=len(request.video.break_points),
        scheduled=len(schedule),
    )
    return ScheduleResponse(matches=matches, schedule=schedule)
