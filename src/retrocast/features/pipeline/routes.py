"""Internal worker endpoint called by the task queue.

Prefix: ``/tasks``
"""

from fastapi import APIRouter, Depends, Header, HTTPException

from retrocast.features.pipeline.models import PipelineOutcome, WorkerPayload
from retrocast.features.pipeline.verify import require_task_queue_caller
from retrocast.features.pipeline.worker import MediaPipelineWorker, build_worker
from retrocast.platform.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
    dependencies=[Depends(require_task_queue_caller)],
)


@router.post("/process-video-worker", response_model=PipelineOutcome)
def process_video_worker(
    payload: WorkerPayload,
    x_user_id: str | None = Header(default=None),
    worker: MediaPipelineWorker = Depends(build_worker),
):
    """Run the pipeline for one task.

    Pipeline failures are recorded on the job and still answered with 200 so
    the queue does not redeliver.
    """
    if x_user_id and x_user_id != payload.user_id:
        raise HTTPException(status_code=400, detail="X-User-Id does not match payload")

    logger.info("worker_request_received", job_id=payload.job_id, user_id=payload.user_id)
    return worker.run(payload)
