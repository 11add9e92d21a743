"""Excel workbook loader."""
from typing import Any

import pandas as pd

from profile_batch_core.ingest.loaders.base import BaseLoader
from profile_batch_core.ingest.normalize import normalize_record

# Every .xlsx is a zip archive.
ZIP_MAGIC = b"PK\x03\x04"


class XLSXLoader(BaseLoader):
    """Loader for .xlsx workbooks. Reads every sheet, in workbook order."""

    name = "xlsx"

    def detect(self, head: bytes, suffix: str) -> bool:
        return suffix == ".xlsx" and head.startswith(ZIP_MAGIC)

    def load(self, file_path: str, options: dict) -> list[dict[str, Any]]:
        try:
            sheets = pd.read_excel(
                file_path,
                sheet_name=options.get("sheet_name"),
                header=options.get("header", 0),
                dtype=str,
                keep_default_na=False,
                engine="openpyxl",
            )
        except Exception as e:
            raise ValueError(f"Excel parse error: {e}") from e
        if isinstance(sheets, pd.DataFrame):
            sheets = {"": sheets}
        records = []
        for df in sheets.values():
            df = df.fillna("")
            records.extend(normalize_record(r) for r in df.to_dict("records"))
        return records
