"""Statistics endpoints."""
from fastapi import APIRouter, Depends

from profile_batch_api.services import get_owner_id
from profile_batch_core.extract.errors import ERROR_KINDS
from profile_batch_core.jobs import get_error_breakdown, get_job_stats

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/overview")
def overview(owner_id: int = Depends(get_owner_id)):
    """Totals across all of the owner's jobs."""
    return get_job_stats(owner_id)


@router.get("/errors")
def errors(owner_id: int = Depends(get_owner_id)):
    """Failed items per error kind."""
    breakdown = get_error_breakdown(owner_id)
    return {kind: breakdown.get(kind, 0) for kind in ERROR_KINDS}


@router.get("/export-counts")
def export_counts(owner_id: int = Depends(get_owner_id)):
    """Successful, failed and total profile counts for the export panel."""
    stats = get_job_stats(owner_id)
    return {"successful": stats["successful"], "failed": stats["failed"], "total": stats["total_items"]}
