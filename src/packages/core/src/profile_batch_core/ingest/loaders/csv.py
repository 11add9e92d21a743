"""CSV file loader."""
import csv
from typing import Any

from profile_batch_core.ingest.loaders.base import BaseLoader
from profile_batch_core.ingest.loaders.delimited import read_delimited


class CSVLoader(BaseLoader):
    """Loader for CSV exports of a spreadsheet."""

    name = "csv"

    def detect(self, head: bytes, suffix: str) -> bool:
        if suffix != ".csv":
            return False
        try:
            text = head.decode("utf-8", errors="replace")
            list(csv.reader([text.split("\n")[0]]))
            return True
        except csv.Error:
            return False

    def load(self, file_path: str, options: dict) -> list[dict[str, Any]]:
        return read_delimited(file_path, ",", options, "CSV")
