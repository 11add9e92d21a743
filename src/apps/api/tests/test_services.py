"""Tests for handing queue drains to the RQ worker."""
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from rq import Queue

from profile_batch_api import services
from profile_batch_api.settings import get_settings
from profile_batch_core.jobs import get_job, init_db
from profile_batch_core.jobs.models import JobSpec
from profile_batch_worker.tasks import drain_pending_jobs


@pytest.fixture(autouse=True)
def rq_backend(tmp_path, monkeypatch):
    monkeypatch.setenv("SQLITE_PATH", str(tmp_path / "jobs.db"))
    monkeypatch.setenv("QUEUE_BACKEND", "rq")
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6399/0")
    get_settings.cache_clear()
    services.get_job_queue.cache_clear()
    init_db()
    yield
    get_settings.cache_clear()
    services.get_job_queue.cache_clear()


@pytest.fixture
def enqueued(monkeypatch):
    calls = []

    def fake_enqueue(self, f, *args, **kwargs):
        calls.append((self.name, f, kwargs))

    monkeypatch.setattr(Queue, "enqueue", fake_enqueue)
    return calls


@pytest.fixture
def redis_down(monkeypatch):
    def failing_enqueue(self, f, *args, **kwargs):
        raise RedisConnectionError("Connection refused")

    monkeypatch.setattr(Queue, "enqueue", failing_enqueue)


@pytest.fixture
def threads(monkeypatch):
    started = []

    def fake_thread_launcher(run):
        started.append(run)
        return True

    monkeypatch.setattr(services, "thread_launcher", fake_thread_launcher)
    return started


def never_called():
    raise AssertionError("the drain should not run in the API process")


def test_enqueue_hands_drain_to_worker(enqueued, threads):
    assert services._enqueue_or_run(never_called) is False

    assert enqueued == [("default", drain_pending_jobs, {"job_timeout": "24h"})]
    assert threads == []


def test_enqueue_failure_falls_back_to_thread(redis_down, threads):
    def run():
        pass

    assert services._enqueue_or_run(run) is True
    assert threads == [run]


def test_rq_backend_queue_hands_off_submitted_jobs(enqueued, threads):
    queue = services.get_job_queue()

    job_id = queue.submit(
        JobSpec(owner_id=1, file_name="profiles.csv", file_path="/tmp/profiles.csv", batch_size=10)
    )

    assert len(enqueued) == 1
    assert threads == []
    assert get_job(job_id)["status"] == "pending"
    assert not queue.is_processing
    assert queue.job_ids() == []


def test_thread_backend_runs_in_process(monkeypatch):
    monkeypatch.setenv("QUEUE_BACKEND", "thread")
    get_settings.cache_clear()

    assert services.get_job_queue()._launcher is services.thread_launcher
