"""Extraction job endpoints."""
import os

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from pydantic import BaseModel, Field

from profile_batch_api.routers.uploads import get_upload_name, get_upload_path
from profile_batch_api.services import get_job_queue, get_owner_id
from profile_batch_api.settings import get_settings
from profile_batch_core.jobs import (
    ItemRecord,
    JobSpec,
    get_active_job,
    get_job,
    job_status_from_row,
    list_items_by_job,
    list_jobs_for_owner,
)
from profile_batch_core.jobs.queue import JobQueue

router = APIRouter(prefix="/jobs", tags=["jobs"])
logger = structlog.get_logger()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class JobCreate(BaseModel):
    """Request to start an extraction job."""

    upload_id: str
    batch_size: int | None = Field(default=None, ge=1, le=500)


def _job_or_404(job_id: int, owner_id: int) -> dict:
    job = get_job(job_id)
    if not job or job["owner_id"] != owner_id:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.post("")
def start_job(
    body: JobCreate,
    queue: JobQueue = Depends(get_job_queue),
    owner_id: int = Depends(get_owner_id),
):
    """Start an extraction job over an uploaded file."""
    path = get_upload_path(body.upload_id)
    if not path:
        raise HTTPException(
            status_code=404, detail="Upload not found or expired; please re-upload"
        )
    spec = JobSpec(
        owner_id=owner_id,
        file_name=get_upload_name(body.upload_id, path),
        file_path=path,
        batch_size=body.batch_size or get_settings().default_batch_size,
    )
    job_id = queue.submit(spec)
    logger.info("job_start_requested", job_id=job_id, upload_id=body.upload_id)
    return {"job_id": job_id, "status": "started"}


@router.get("")
def list_jobs(limit: int = 10, owner_id: int = Depends(get_owner_id)):
    """Recent jobs, newest first."""
    jobs = list_jobs_for_owner(owner_id, limit=max(1, min(limit, 100)))
    out = []
    for j in jobs:
        total = j["total_items"] or 0
        processed = j["processed"] or 0
        out.append(
            {
                "job_id": j["id"],
                "file_name": j["file_name"],
                "status": j["status"],
                "total_items": total,
                "progress": round(processed / total * 100) if total else 0,
                "success_rate": f"{(j['successful'] or 0) / total * 100:.1f}%" if total else "0%",
                "started_at": j.get("started_at") or j.get("created_at"),
            }
        )
    return {"jobs": out}


@router.get("/current")
def current_job(owner_id: int = Depends(get_owner_id)):
    """The owner's processing or paused job, or null."""
    job = get_active_job(owner_id)
    if not job:
        return None
    return job_status_from_row(job)


@router.get("/{job_id}")
def get_job_status(job_id: int, owner_id: int = Depends(get_owner_id)):
    """Get job status and progress."""
    return job_status_from_row(_job_or_404(job_id, owner_id))


@router.get("/{job_id}/items", response_model=list[ItemRecord])
def get_job_items(job_id: int, status: str | None = None, owner_id: int = Depends(get_owner_id)):
    """A job's items in file order."""
    _job_or_404(job_id, owner_id)
    return list_items_by_job(job_id, status=status)


def _conflict(job: dict, action: str) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail=f"Job cannot be {action} (status: {job['status']})",
    )


@router.post("/{job_id}/pause")
def pause_job(
    job_id: int,
    queue: JobQueue = Depends(get_job_queue),
    owner_id: int = Depends(get_owner_id),
):
    """Pause a processing job at its next batch boundary."""
    job = _job_or_404(job_id, owner_id)
    if not queue.pause(job_id):
        raise _conflict(job, "paused")
    return {"job_id": job_id, "status": "paused"}


@router.post("/{job_id}/resume")
def resume_job(
    job_id: int,
    queue: JobQueue = Depends(get_job_queue),
    owner_id: int = Depends(get_owner_id),
):
    """Resume a paused job from its next unprocessed item."""
    job = _job_or_404(job_id, owner_id)
    if not queue.resume(job_id):
        raise _conflict(job, "resumed")
    return {"job_id": job_id, "status": "pending"}


@router.post("/{job_id}/stop")
def stop_job(
    job_id: int,
    queue: JobQueue = Depends(get_job_queue),
    owner_id: int = Depends(get_owner_id),
):
    """Stop a job for good; it ends as failed."""
    job = _job_or_404(job_id, owner_id)
    if not queue.stop(job_id):
        raise _conflict(job, "stopped")
    return {"job_id": job_id, "status": "failed"}


@router.get("/{job_id}/download")
def download_results(job_id: int, owner_id: int = Depends(get_owner_id)):
    """Download a completed job's results workbook."""
    job = _job_or_404(job_id, owner_id)
    path = job.get("result_path")
    if not path or not os.path.exists(path):
        raise HTTPException(status_code=404, detail="Results not found")
    return FileResponse(path, media_type=XLSX_MEDIA_TYPE, filename=os.path.basename(path))
