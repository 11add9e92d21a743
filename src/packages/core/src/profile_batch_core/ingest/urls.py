"""Profile URL discovery in uploaded spreadsheets."""
import re
from typing import Any, Iterable

import structlog

from profile_batch_core.ingest.detect import detect_format, load_records

logger = structlog.get_logger()

PROFILE_URL_RE = re.compile(
    r"(?<![\w.-])(?:https?://)?(?:[a-z]{2,3}\.)?linkedin\.com/in/([A-Za-z0-9\-_%\.]+)",
    re.IGNORECASE,
)


def normalize_profile_url(slug: str) -> str:
    return f"https://www.linkedin.com/in/{slug.rstrip('.')}"


def find_profile_urls(records: Iterable[dict[str, Any]]) -> list[str]:
    """Scan every cell, row by row, and collect unique profile URLs in file order."""
    seen: set[str] = set()
    urls: list[str] = []
    for record in records:
        for value in record.values():
            if not isinstance(value, str) or "linkedin.com" not in value.lower():
                continue
            for match in PROFILE_URL_RE.finditer(value):
                url = normalize_profile_url(match.group(1))
                key = url.lower()
                if key not in seen:
                    seen.add(key)
                    urls.append(url)
    return urls


def resolve_profile_urls(file_path: str) -> list[str]:
    """Ordered, de-duplicated profile URLs found in an uploaded file.

    Raises ValueError when the file format is unsupported or the file
    cannot be parsed. An empty list means the file parsed but held no URLs.
    """
    format_name = detect_format(file_path)
    if not format_name:
        raise ValueError(f"Unsupported or unrecognized file format: {file_path}")
    # header=None: a URL in the first row is data, not a column name.
    records = load_records(file_path, format_name, {"header": None})
    urls = find_profile_urls(records)
    logger.info("profile_urls_resolved", file_path=file_path, rows=len(records), urls=len(urls))
    return urls
