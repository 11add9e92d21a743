"""TSV file loader."""
import csv
from typing import Any

from profile_batch_core.ingest.loaders.base import BaseLoader
from profile_batch_core.ingest.loaders.delimited import read_delimited


class TSVLoader(BaseLoader):
    """Loader for TSV (tab-separated values) files."""

    name = "tsv"

    def detect(self, head: bytes, suffix: str) -> bool:
        if suffix != ".tsv":
            return False
        first_line = head.decode("utf-8", errors="replace").split("\n")[0]
        # A single-column sheet has no tab at all.
        try:
            list(csv.reader([first_line], delimiter="\t"))
        except csv.Error:
            return False
        return True

    def load(self, file_path: str, options: dict) -> list[dict[str, Any]]:
        return read_delimited(file_path, "\t", options, "TSV")
