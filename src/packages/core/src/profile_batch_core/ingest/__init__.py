"""Ingest module for uploaded spreadsheets."""
from profile_batch_core.ingest.detect import detect_format, load_records, get_loader, SUPPORTED_SUFFIXES
from profile_batch_core.ingest.urls import find_profile_urls, resolve_profile_urls

__all__ = [
    "detect_format",
    "load_records",
    "get_loader",
    "SUPPORTED_SUFFIXES",
    "find_profile_urls",
    "resolve_profile_urls",
]
