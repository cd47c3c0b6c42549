"""Job submission and status REST endpoints.

Prefix: ``/jobs``
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from retrocast.features.auth.dependencies import get_current_user
from retrocast.features.jobs.dispatcher import Dispatcher
from retrocast.features.jobs.models import (
    JobResponse,
    JobSubmitRequest,
    JobSubmitResponse,
    ProcessedVideoResponse,
)
from retrocast.features.jobs.tracker import JobStatusTracker, get_tracker
from retrocast.platform.errors import (
    ConflictError,
    ExternalServiceError,
    ValidationError,
)
from retrocast.platform.logging_config import get_logger
from retrocast.platform.protocols import CatalogLookup, ResultStoragePort, TaskQueue
from retrocast.platform.storage_factory import (
    get_catalog,
    get_result_storage,
    get_task_queue,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])


def get_dispatcher(
    tracker: JobStatusTracker = Depends(get_tracker),
    catalog: CatalogLookup = Depends(get_catalog),
    queue: TaskQueue = Depends(get_task_queue),
) -> Dispatcher:
    return Dispatcher(tracker, catalog, queue)


# ---------------------------------------------------------------------------
# POST /jobs: submit a new processing job
# ---------------------------------------------------------------------------


@router.post("", status_code=202, response_model=JobSubmitResponse)
def submit_job(
    request: JobSubmitRequest,
    user: dict = Depends(get_current_user),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    try:
        job_id = dispatcher.submit_job(
            user_id=user["sub"],
            video_ref=request.video_ref,
            ad_refs=request.ad_refs,
            style_profile=request.style_profile,
        )
    except ValidationError as exc:
        return JSONResponse(status_code=400, content={"message": str(exc)})
    except ConflictError as exc:
        return JSONResponse(
            status_code=409, content={"status": "CONFLICT", "message": str(exc)}
        )
    except ExternalServiceError as exc:
        return JSONResponse(status_code=502, content={"message": str(exc)})

    return JobSubmitResponse(job_id=job_id)


# ---------------------------------------------------------------------------
# Status lookups; /latest-status is registered before /status/{job_id}
# ---------------------------------------------------------------------------


@router.get("/latest-status", response_model=JobResponse)
def get_latest_status(
    user: dict = Depends(get_current_user),
    tracker: JobStatusTracker = Depends(get_tracker),
):
    job = tracker.get_latest_status(user["sub"])
    if job is None:
        raise HTTPException(status_code=404, detail="No jobs found")
    return job


def _owned_or_raise(record: dict | None, user: dict, what: str) -> dict:
    if record is None:
        raise HTTPException(status_code=404, detail=f"{what} not found")
    if record.get("user_id") != user["sub"]:
        logger.warning("job_access_denied", requester=user["sub"], owner=record.get("user_id"))
        raise HTTPException(status_code=403, detail="Not authorized to view this job")
    return record


@router.get("/status/{job_id}", response_model=JobResponse)
def get_status(
    job_id: str,
    user: dict = Depends(get_current_user),
    tracker: JobStatusTracker = Depends(get_tracker),
):
    return _owned_or_raise(tracker.get_status(job_id), user, "Job")


@router.get("/result/{job_id}", response_model=ProcessedVideoResponse)
def get_result(
    job_id: str,
    user: dict = Depends(get_current_user),
    results: ResultStoragePort = Depends(get_result_storage),
):
    return _owned_or_raise(results.get_result_for_job(job_id), user, "Result")
