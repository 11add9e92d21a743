"""Health check endpoint."""
from fastapi import APIRouter, Depends

from profile_batch_api.services import get_job_queue
from profile_batch_core.jobs.queue import JobQueue

router = APIRouter(tags=["health"])


@router.get("/health")
def health(queue: JobQueue = Depends(get_job_queue)):
    """Health check, with whether the queue loop is running in this process."""
    return {"status": "ok", "queue": "processing" if queue.is_processing else "idle"}
