"""Tests for the profile API client."""
import httpx
import pytest

from profile_batch_core.extract import (
    ACCESS_RESTRICTED,
    CAPTCHA,
    NOT_FOUND,
    RATE_LIMIT,
    UNKNOWN,
    ExtractionError,
    ProfileApiClient,
)

URL = "https://www.linkedin.com/in/ada-lovelace"

API_BODY = {
    "firstName": "Ada",
    "lastName": "Lovelace",
    "headline": "Analyst",
    "summary": "Notes on the engine",
    "location": "London",
    "experience": [
        {"title": "Analyst", "company": "Engines Ltd", "duration": "1842 - 1843", "description": "Notes"},
        {"title": "Writer", "company": "", "duration": "1840"},
    ],
    "education": [{"school": "Home", "degree": "", "field": "Mathematics", "year": 1835}],
    "skills": ["math", "poetry"],
    "currentPosition": "Analyst",
    "currentCompany": "Engines Ltd",
}


def client_for(handler) -> ProfileApiClient:
    return ProfileApiClient("http://api.test/", transport=httpx.MockTransport(handler))


def test_extract_success_sends_token_and_url():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["url"] = request.url.params["url"]
        seen["path"] = request.url.path
        return httpx.Response(200, json=API_BODY)

    record = client_for(handler).extract(URL, "tok")

    assert seen == {"auth": "Bearer tok", "url": URL, "path": "/profiles"}
    assert record.profile_id == "ada-lovelace"
    assert record.first_name == "Ada"
    assert record.positions[0].start_date == "1842"
    assert record.positions[0].end_date == "1843"
    assert record.positions[1].end_date is None
    assert record.education[0].field_of_study == "Mathematics"
    assert record.education[0].start_date == "1835"
    assert record.skills == ["math", "poetry"]
    assert record.current_company == "Engines Ltd"


@pytest.mark.parametrize(
    "status,body,kind",
    [
        (404, "missing", NOT_FOUND),
        (403, "private", ACCESS_RESTRICTED),
        (429, "slow down", RATE_LIMIT),
        (500, "Please solve this CAPTCHA", CAPTCHA),
        (502, "bad gateway", UNKNOWN),
    ],
)
def test_extract_maps_status_codes(status, body, kind):
    client = client_for(lambda request: httpx.Response(status, text=body))
    with pytest.raises(ExtractionError) as exc_info:
        client.extract(URL, "tok")
    assert exc_info.value.kind == kind


def test_extract_connection_error_is_unknown():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ExtractionError) as exc_info:
        client_for(handler).extract(URL, "tok")
    assert exc_info.value.kind == UNKNOWN


def test_extract_invalid_json_is_unknown():
    client = client_for(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(ExtractionError, match="invalid JSON"):
        client.extract(URL, "tok")
