"""Excel export of extraction results."""
import io
import os
from typing import Any

import pandas as pd
import structlog

from profile_batch_core.jobs import repo
from profile_batch_core.jobs.models import ITEM_FAILED, ITEM_SUCCESS

logger = structlog.get_logger()

EXPORT_KINDS = {
    "successful": (ITEM_SUCCESS,),
    "failed": (ITEM_FAILED,),
    "all": (ITEM_SUCCESS, ITEM_FAILED),
}

COLUMNS = [
    "url",
    "status",
    "error_type",
    "error_message",
    "first_name",
    "last_name",
    "headline",
    "summary",
    "location",
    "industry",
    "current_position",
    "current_company",
    "positions",
    "education",
    "skills",
]


def _join(values: list[str]) -> str:
    return "; ".join(v for v in values if v)


def _row(item: dict[str, Any]) -> dict[str, Any]:
    data = item.get("payload") or {}
    positions = [
        " at ".join(p for p in (pos.get("title"), pos.get("company")) if p)
        for pos in data.get("positions") or []
    ]
    education = [
        ", ".join(p for p in (edu.get("degree"), edu.get("field_of_study"), edu.get("school")) if p)
        for edu in data.get("education") or []
    ]
    return {
        "url": item["url"],
        "status": item["status"],
        "error_type": item.get("error_kind") or "",
        "error_message": item.get("error_message") or "",
        "first_name": data.get("first_name", ""),
        "last_name": data.get("last_name", ""),
        "headline": data.get("headline", ""),
        "summary": data.get("summary", ""),
        "location": data.get("location", ""),
        "industry": data.get("industry", ""),
        "current_position": data.get("current_position", ""),
        "current_company": data.get("current_company", ""),
        "positions": _join(positions),
        "education": _join(education),
        "skills": _join(data.get("skills") or []),
    }


def build_results_frame(items: list[dict[str, Any]]) -> pd.DataFrame:
    """One row per item, in the order given."""
    return pd.DataFrame([_row(i) for i in items], columns=COLUMNS)


def _to_xlsx_bytes(df: pd.DataFrame) -> bytes:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name="Profiles", index=False)
    return buf.getvalue()


def _results_dir(results_dir: str | None) -> str:
    return results_dir or os.environ.get("RESULTS_DIR", "/data/results")


def save_job_results(job_id: int, items: list[dict[str, Any]], results_dir: str | None = None) -> str:
    """Write a job's results workbook and return its path."""
    out_dir = _results_dir(results_dir)
    os.makedirs(out_dir, exist_ok=True)
    path = os.path.join(out_dir, f"job_{job_id}_results.xlsx")
    with open(path, "wb") as f:
        f.write(_to_xlsx_bytes(build_results_frame(items)))
    logger.info("results_saved", job_id=job_id, path=path, rows=len(items))
    return path


def export_results(owner_id: int, kind: str) -> bytes:
    """Workbook of an owner's successful, failed, or all finished items."""
    statuses = EXPORT_KINDS.get(kind)
    if statuses is None:
        raise ValueError(f"Unknown export type: {kind}")
    items = repo.list_items_for_owner(owner_id, statuses)
    return _to_xlsx_bytes(build_results_frame(items))
