"""Result exports."""
from profile_batch_core.export.xlsx import (
    COLUMNS,
    EXPORT_KINDS,
    build_results_frame,
    export_results,
    save_job_results,
)

__all__ = ["COLUMNS", "EXPORT_KINDS", "build_results_frame", "export_results", "save_job_results"]
