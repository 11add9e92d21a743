"""Spreadsheet upload endpoints."""
import os
from pathlib import Path

import structlog
from fastapi import APIRouter, File, HTTPException, UploadFile

from profile_batch_api.settings import get_settings
from profile_batch_core.ingest import SUPPORTED_SUFFIXES, detect_format, resolve_profile_urls
from profile_batch_core.util import generate_id

router = APIRouter(prefix="/uploads", tags=["uploads"])
logger = structlog.get_logger()

UPLOAD_PATHS: dict[str, str] = {}
UPLOAD_NAMES: dict[str, str] = {}

PREVIEW_URLS = 10


def _discard(upload_id: str, path: str) -> None:
    os.remove(path)
    UPLOAD_PATHS.pop(upload_id, None)
    UPLOAD_NAMES.pop(upload_id, None)


@router.post("")
async def upload_file(file: UploadFile = File(...)):
    """Upload a spreadsheet of profile URLs."""
    settings = get_settings()
    max_bytes = settings.max_upload_mb * 1024 * 1024
    content = await file.read()
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=413, detail=f"File too large (max {settings.max_upload_mb} MB)"
        )

    upload_id = generate_id()
    suffix = Path(file.filename or "").suffix.lower() or ".bin"
    os.makedirs(settings.upload_dir, exist_ok=True)
    save_path = os.path.join(settings.upload_dir, f"{upload_id}{suffix}")
    with open(save_path, "wb") as f:
        f.write(content)
    UPLOAD_PATHS[upload_id] = save_path
    UPLOAD_NAMES[upload_id] = file.filename or f"{upload_id}{suffix}"

    detected = detect_format(save_path)
    if not detected:
        _discard(upload_id, save_path)
        raise HTTPException(
            status_code=400, detail="Unsupported or unrecognized file format"
        )

    try:
        urls = resolve_profile_urls(save_path)
    except ValueError as e:
        _discard(upload_id, save_path)
        raise HTTPException(status_code=400, detail=str(e)) from e

    logger.info("file_uploaded", upload_id=upload_id, format=detected, profiles=len(urls))
    return {
        "upload_id": upload_id,
        "name": UPLOAD_NAMES[upload_id],
        "size": len(content),
        "detected_format": detected,
        "profile_count": len(urls),
        "preview_urls": urls[:PREVIEW_URLS],
        "status": "uploaded",
    }


@router.delete("/{upload_id}")
def delete_upload(upload_id: str):
    """Remove an uploaded file that no job needs any more."""
    path = get_upload_path(upload_id)
    if not path:
        raise HTTPException(status_code=404, detail="Upload not found")
    _discard(upload_id, path)
    return {"upload_id": upload_id, "deleted": True}


def get_upload_path(upload_id: str) -> str | None:
    """Get the path for an upload ID."""
    path = UPLOAD_PATHS.get(upload_id)
    if path and os.path.exists(path):
        return path
    settings = get_settings()
    for ext in SUPPORTED_SUFFIXES:
        p = os.path.join(settings.upload_dir, f"{upload_id}{ext}")
        if os.path.exists(p):
            return p
    return None


def get_upload_name(upload_id: str, path: str) -> str:
    return UPLOAD_NAMES.get(upload_id) or os.path.basename(path)
