"""Shared reader for CSV and TSV loaders."""
import csv
from typing import Any

import pandas as pd

from profile_batch_core.ingest.normalize import normalize_record


def _widest_row(file_path: str, sep: str, encoding: str) -> int:
    with open(file_path, newline="", encoding=encoding) as f:
        return max((len(row) for row in csv.reader(f, delimiter=sep)), default=0)


def read_delimited(file_path: str, sep: str, options: dict, label: str) -> list[dict[str, Any]]:
    """Load a delimited file into normalized records.

    With ``header=None`` every row is data and rows may differ in length
    (a one-cell title row above two-column rows, say). The frame is then
    sized to the widest row so no cell is dropped, and a row pandas still
    cannot place is an error rather than being skipped.
    """
    header = options.get("header", "infer")
    encoding = options.get("encoding", "utf-8")
    extra: dict[str, Any] = {"on_bad_lines": "skip"}
    try:
        if header is None:
            width = _widest_row(file_path, sep, encoding)
            if width == 0:
                return []
            extra = {"names": list(range(width)), "on_bad_lines": "error"}
        df = pd.read_csv(
            file_path,
            sep=sep,
            header=header,
            dtype=str,
            keep_default_na=False,
            encoding=encoding,
            **extra,
        )
    except pd.errors.EmptyDataError:
        return []
    except Exception as e:
        raise ValueError(f"{label} parse error: {e}") from e
    df = df.fillna("")
    return [normalize_record(r) for r in df.to_dict("records")]
