"""Rendering job rows as user-facing progress."""
import math
from datetime import datetime
from typing import Any

from profile_batch_core.jobs.models import JobProgress, JobStatus
from profile_batch_core.util.time import parse_iso, utc_now

CALCULATING = "Calculating..."


def format_eta(estimated_completion: str | None, now: datetime | None = None) -> str:
    """Minutes until the estimated completion, e.g. ``"12m"``."""
    eta = parse_iso(estimated_completion)
    if eta is None:
        return CALCULATING
    minutes = math.ceil((eta - (now or utc_now())).total_seconds() / 60)
    return f"{max(0, minutes)}m"


def format_rate(rate: float | None) -> str:
    if rate is None:
        return CALCULATING
    return f"{rate:.1f} profiles/min"


def job_status_from_row(job: dict[str, Any], now: datetime | None = None) -> JobStatus:
    total = job["total_items"] or 0
    processed = job["processed"] or 0
    percentage = round(processed / total * 100) if total else 0
    return JobStatus(
        job_id=job["id"],
        file_name=job["file_name"],
        status=job["status"],
        batch_size=job["batch_size"],
        progress=JobProgress(
            percentage=percentage,
            processed=processed,
            total=total,
            successful=job["successful"] or 0,
            failed=job["failed"] or 0,
            remaining=max(0, total - processed),
            eta=format_eta(job.get("estimated_completion"), now),
            rate=format_rate(job.get("processing_rate")),
        ),
        error_message=job.get("error_message"),
        result_available=bool(job.get("result_path")),
        started_at=job.get("started_at"),
        completed_at=job.get("completed_at"),
        created_at=job.get("created_at"),
    )
