"""Row normalization utilities."""
from typing import Any

import pandas as pd


def normalize_record(row: dict) -> dict[str, Any]:
    """Normalize a spreadsheet row to JSON-serializable types.

    Keys are stringified so header-less sheets (integer column labels)
    look the same as sheets with a header row.
    """
    out = {}
    for k, v in row.items():
        key = str(k)
        if v is None or (isinstance(v, float) and pd.isna(v)):
            out[key] = None
        elif isinstance(v, (int, float)):
            out[key] = v
        else:
            out[key] = str(v).strip() if v else ""
    return out
