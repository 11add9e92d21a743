"""HTTP client for the external profile API."""
import os
from typing import Any, Protocol

import httpx
import structlog
from pydantic import BaseModel, Field

from profile_batch_core.extract.errors import (
    ACCESS_RESTRICTED,
    CAPTCHA,
    NOT_FOUND,
    RATE_LIMIT,
    UNKNOWN,
    ExtractionError,
)

logger = structlog.get_logger()


class Position(BaseModel):
    title: str = ""
    company: str = ""
    start_date: str = ""
    end_date: str | None = None
    description: str = ""


class Education(BaseModel):
    school: str = ""
    degree: str = ""
    field_of_study: str = ""
    start_date: str = ""
    end_date: str = ""


class ProfileRecord(BaseModel):
    """Structured profile returned for one URL."""

    profile_id: str
    public_profile_url: str
    first_name: str = ""
    last_name: str = ""
    headline: str = ""
    summary: str = ""
    industry: str = ""
    location: str = ""
    positions: list[Position] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    current_position: str = ""
    current_company: str = ""


class ProfileExtractor(Protocol):
    """Anything that can turn a profile URL into a ProfileRecord."""

    def extract(self, url: str, access_token: str) -> ProfileRecord: ...


def _split_duration(duration: str) -> tuple[str, str | None]:
    parts = [p.strip() for p in (duration or "").split("-", 1)]
    start = parts[0] if parts else ""
    end = parts[1] if len(parts) > 1 and parts[1] else None
    return start, end


def profile_from_api(url: str, data: dict[str, Any]) -> ProfileRecord:
    """Convert the API's camelCase body into a ProfileRecord."""
    positions = []
    for exp in data.get("experience") or []:
        start, end = _split_duration(exp.get("duration", ""))
        positions.append(
            Position(
                title=exp.get("title") or "",
                company=exp.get("company") or "",
                start_date=start,
                end_date=end,
                description=exp.get("description") or "",
            )
        )
    education = [
        Education(
            school=edu.get("school") or "",
            degree=edu.get("degree") or "",
            field_of_study=edu.get("field") or "",
            start_date=str(edu.get("year") or ""),
            end_date=str(edu.get("year") or ""),
        )
        for edu in data.get("education") or []
    ]
    return ProfileRecord(
        profile_id=url.rstrip("/").split("/")[-1] or "unknown",
        public_profile_url=url,
        first_name=data.get("firstName") or "",
        last_name=data.get("lastName") or "",
        headline=data.get("headline") or "",
        summary=data.get("summary") or "",
        industry=data.get("industry") or "",
        location=data.get("location") or "",
        positions=positions,
        education=education,
        skills=[str(s) for s in data.get("skills") or []],
        current_position=data.get("currentPosition") or "",
        current_company=data.get("currentCompany") or "",
    )


_STATUS_KINDS = {404: NOT_FOUND, 403: ACCESS_RESTRICTED, 429: RATE_LIMIT}


class ProfileApiClient:
    """Calls ``GET {base_url}/profiles?url=...`` with the owner's bearer token."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = (base_url or os.environ.get("PROFILE_API_URL", "http://profile-api:8080")).rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def extract(self, url: str, access_token: str) -> ProfileRecord:
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.get(
                    f"{self.base_url}/profiles",
                    params={"url": url},
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.TimeoutException as e:
            raise ExtractionError(UNKNOWN, f"Profile API timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ExtractionError(UNKNOWN, f"Cannot reach profile API: {e}") from e

        if response.status_code != 200:
            kind = _STATUS_KINDS.get(response.status_code, UNKNOWN)
            if kind == UNKNOWN and "captcha" in response.text.lower():
                kind = CAPTCHA
            logger.warning("profile_api_error", url=url, status=response.status_code, kind=kind)
            raise ExtractionError(kind, f"Profile API error {response.status_code} for {url}")

        try:
            data = response.json()
        except ValueError as e:
            raise ExtractionError(UNKNOWN, "Profile API returned invalid JSON") from e
        if not isinstance(data, dict):
            raise ExtractionError(UNKNOWN, "Profile API returned an unexpected body")
        return profile_from_api(url, data)
