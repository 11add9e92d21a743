"""Shared fixtures for core tests."""
import pytest

from profile_batch_core.extract import ExtractionError, ProfileRecord
from profile_batch_core.jobs import init_db, update_user_tokens
from profile_batch_core.jobs.processor import BatchProcessor
from profile_batch_core.jobs.queue import JobQueue, inline_launcher
from profile_batch_core.util import Pacer

OWNER_ID = 1


def profile_url(n: int) -> str:
    return f"https://www.linkedin.com/in/person-{n}"


def make_record(url: str, first_name: str = "Ada") -> ProfileRecord:
    return ProfileRecord(
        profile_id=url.rstrip("/").split("/")[-1],
        public_profile_url=url,
        first_name=first_name,
        last_name="Lovelace",
        headline="Engineer",
        skills=["python", "sql"],
    )


class FakeExtractor:
    """Plays back scripted outcomes per URL; unscripted URLs succeed.

    An outcome is either an exception to raise or ``"ok"``. ``hooks``
    run before the call for a URL, e.g. to pause the job mid-batch.
    """

    def __init__(self, outcomes: dict[str, list] | None = None):
        self.outcomes = {k: list(v) for k, v in (outcomes or {}).items()}
        self.calls: list[str] = []
        self.hooks: dict[str, callable] = {}

    def extract(self, url: str, access_token: str) -> ProfileRecord:
        self.calls.append(url)
        hook = self.hooks.pop(url, None)
        if hook:
            hook()
        script = self.outcomes.get(url)
        outcome = script.pop(0) if script else "ok"
        if isinstance(outcome, BaseException):
            raise outcome
        return make_record(url)

    def attempts(self, url: str) -> int:
        return self.calls.count(url)


@pytest.fixture(autouse=True)
def db(tmp_path, monkeypatch):
    """Fresh SQLite database per test."""
    monkeypatch.setenv("SQLITE_PATH", str(tmp_path / "jobs.db"))
    monkeypatch.setenv("RESULTS_DIR", str(tmp_path / "results"))
    init_db()
    return tmp_path / "jobs.db"


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def pacer(sleeps):
    return Pacer(item_delay=2.0, batch_delay=5.0, sleep=sleeps.append)


@pytest.fixture
def extractor():
    return FakeExtractor()


@pytest.fixture
def authorized_owner():
    update_user_tokens(OWNER_ID, "token-123")
    return OWNER_ID


@pytest.fixture
def url_file(tmp_path):
    """Write a CSV of profile URLs and return its path."""

    def _write(urls: list[str], name: str = "profiles.csv") -> str:
        path = tmp_path / name
        path.write_text("linkedin_url\n" + "\n".join(urls) + "\n")
        return str(path)

    return _write


@pytest.fixture
def processor(extractor, pacer, tmp_path):
    return BatchProcessor(
        extractor=extractor,
        pacer=pacer,
        results_dir=str(tmp_path / "results"),
    )


@pytest.fixture
def queue(processor):
    return JobQueue(processor, launcher=inline_launcher)


def not_found(url: str) -> ExtractionError:
    return ExtractionError("not_found", f"Profile API error 404 for {url}")


def rate_limited(url: str) -> ExtractionError:
    return ExtractionError("rate_limit", f"Profile API error 429 for {url}")
