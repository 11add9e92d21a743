"""Job and item models."""
from typing import Any

from pydantic import BaseModel, Field

PENDING = "pending"
PROCESSING = "processing"
PAUSED = "paused"
COMPLETED = "completed"
FAILED = "failed"

JOB_STATUSES = (PENDING, PROCESSING, PAUSED, COMPLETED, FAILED)
TERMINAL_STATUSES = (COMPLETED, FAILED)

ITEM_PENDING = "pending"
ITEM_PROCESSING = "processing"
ITEM_SUCCESS = "success"
ITEM_FAILED = "failed"
ITEM_RETRYING = "retrying"

DEFAULT_BATCH_SIZE = 50


class JobSpec(BaseModel):
    """What a caller submits to the queue."""

    owner_id: int
    file_name: str
    file_path: str
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1)
    total_items: int = Field(default=0, ge=0)


class JobProgress(BaseModel):
    """Progress snapshot shown to the user."""

    percentage: int
    processed: int
    total: int
    successful: int
    failed: int
    remaining: int
    eta: str
    rate: str


class JobStatus(BaseModel):
    """Job status response."""

    job_id: int
    file_name: str
    status: str
    batch_size: int
    progress: JobProgress
    error_message: str | None = None
    result_available: bool = False
    started_at: str | None = None
    completed_at: str | None = None
    created_at: str | None = None


class ItemRecord(BaseModel):
    """One profile URL within a job."""

    id: int
    job_id: int
    position: int
    url: str
    status: str
    payload: dict[str, Any] | None = None
    error_kind: str | None = None
    error_message: str | None = None
    retry_count: int = 0
    last_attempt: str | None = None
    extracted_at: str | None = None
