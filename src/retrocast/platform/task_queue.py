"""TaskQueue implementations.

``LocalTaskQueue`` runs the worker in a background thread pool of the API
process (development, tests). ``CloudTasksQueue`` creates a Google Cloud
Tasks HTTP task that POSTs the payload to the worker endpoint with an OIDC
token.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

from google.api_core.exceptions import GoogleAPICallError
from google.cloud import tasks_v2

from retrocast.features.pipeline.models import WorkerPayload
from retrocast.platform.errors import ExternalServiceError
from retrocast.platform.logging_config import get_logger

logger = get_logger(__name__)

WORKER_PATH = "/tasks/process-video-worker"


class LocalTaskQueue:
    """Runs each payload through ``handler`` on a background thread."""

    def __init__(self, handler: Callable[[WorkerPayload], object], max_workers: int = 2):
        self._handler = handler
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="retrocast-worker"
        )

    def enqueue(self, payload: WorkerPayload) -> str:
        task_name = f"local-{payload.job_id}"
        future = self._executor.submit(self._handler, payload)
        future.add_done_callback(lambda f: self._log_result(task_name, f))
        logger.info("task_enqueued", backend="local", task=task_name)
        return task_name

    @staticmethod
    def _log_result(task_name: str, future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("local_task_crashed", task=task_name, error=str(exc))
        else:
            logger.debug("local_task_finished", task=task_name)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class CloudTasksQueue:
    """Enqueues HTTP tasks on a Cloud Tasks queue."""

    def __init__(
        self,
        project_id: str,
        location: str,
        queue: str,
        worker_base_url: str,
        service_account: str,
        client: tasks_v2.CloudTasksClient | None = None,
    ):
        if not (project_id and queue and worker_base_url):
            raise ExternalServiceError(
                "GCP_PROJECT_ID, GCP_TASK_QUEUE and WORKER_BASE_URL must be set "
                "for the cloudtasks queue backend"
            )
        self._project_id = project_id
        self._location = location
        self._queue = queue
        self._audience = worker_base_url
        self._worker_url = worker_base_url.rstrip("/") + WORKER_PATH
        self._service_account = service_account
        self._client = client

    def _tasks(self) -> tasks_v2.CloudTasksClient:
        if self._client is None:
            self._client = tasks_v2.CloudTasksClient()
        return self._client

    def build_task(self, payload: WorkerPayload) -> tasks_v2.Task:
        http_request = tasks_v2.HttpRequest(
            http_method=tasks_v2.HttpMethod.POST,
            url=self._worker_url,
            headers={
                "Content-Type": "application/json",
                "X-User-Id": payload.user_id,
                "X-Job-Id": payload.job_id,
            },
            body=payload.model_dump_json(by_alias=True).encode("utf-8"),
        )
        if self._service_account:
            http_request.oidc_token = tasks_v2.OidcToken(
                service_account_email=self._service_account,
                audience=self._audience,
            )
        return tasks_v2.Task(http_request=http_request)

    def enqueue(self, payload: WorkerPayload) -> str:
        client = self._tasks()
        parent = client.queue_path(self._project_id, self._location, self._queue)
        try:
            response = client.create_task(parent=parent, task=self.build_task(payload))
        except GoogleAPICallError as exc:
            logger.error("cloud_task_create_failed", job_id=payload.job_id, error=str(exc))
            raise ExternalServiceError(f"Failed to create Cloud Task: {exc}") from exc

        logger.info(
            "task_enqueued", backend="cloudtasks", task=response.name, job_id=payload.job_id
        )
        return response.name
