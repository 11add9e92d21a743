"""Job management module.

The queue and processor live in ``profile_batch_core.jobs.queue`` and
``profile_batch_core.jobs.processor``; import them from there.
"""
from profile_batch_core.jobs.repo import (
    init_db,
    create_job,
    get_job,
    update_job,
    list_jobs_for_owner,
    get_active_job,
    list_items_by_job,
    get_user,
    ensure_user,
    update_user_tokens,
    get_job_stats,
    get_error_breakdown,
)
from profile_batch_core.jobs.models import JobSpec, JobStatus, JobProgress, ItemRecord
from profile_batch_core.jobs.progress import job_status_from_row

__all__ = [
    "init_db",
    "create_job",
    "get_job",
    "update_job",
    "list_jobs_for_owner",
    "get_active_job",
    "list_items_by_job",
    "get_user",
    "ensure_user",
    "update_user_tokens",
    "get_job_stats",
    "get_error_breakdown",
    "JobSpec",
    "JobStatus",
    "JobProgress",
    "ItemRecord",
    "job_status_from_row",
]
