"""Per-job scratch directories."""

import shutil
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from retrocast.platform.logging_config import get_logger

logger = get_logger(__name__)


@contextmanager
def scratch_workspace(root: str | Path, user_id: str, job_id: str) -> Iterator[Path]:
    """Create ``<root>/<user_id>/<job_id>-<random>/`` and remove it on exit.

    A fresh directory per execution, so a redelivered task never sees files
    left by an earlier attempt.
    """
    path = Path(root) / user_id / f"{job_id}-{uuid.uuid4().hex[:8]}"
    path.mkdir(parents=True, exist_ok=False)
    logger.debug("workspace_created", path=str(path), job_id=job_id)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        if path.exists():
            logger.warning("workspace_cleanup_incomplete", path=str(path), job_id=job_id)
        else:
            logger.debug("workspace_removed", path=str(path), job_id=job_id)
