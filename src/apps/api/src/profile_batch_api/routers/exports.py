"""Export endpoints."""
from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from profile_batch_api.routers.jobs import XLSX_MEDIA_TYPE
from profile_batch_api.services import get_owner_id
from profile_batch_core.export import EXPORT_KINDS, export_results

router = APIRouter(prefix="/export", tags=["export"])


@router.post("/{kind}")
def export(kind: str, owner_id: int = Depends(get_owner_id)):
    """Download successful, failed, or all extracted profiles as a workbook."""
    if kind not in EXPORT_KINDS:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown export type: {kind} (expected one of {', '.join(EXPORT_KINDS)})",
        )
    content = export_results(owner_id, kind)
    filename = f"profile_data_{kind}_{date.today().isoformat()}.xlsx"
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
