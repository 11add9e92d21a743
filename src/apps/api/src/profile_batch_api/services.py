"""Shared service objects for the routers."""
from functools import lru_cache
from typing import Callable

import structlog

from profile_batch_api.settings import Settings, get_settings
from profile_batch_core.extract import ProfileApiClient
from profile_batch_core.jobs.processor import BatchProcessor
from profile_batch_core.jobs.queue import JobQueue, thread_launcher
from profile_batch_core.util import Pacer

logger = structlog.get_logger()


def build_processor(settings: Settings) -> BatchProcessor:
    return BatchProcessor(
        extractor=ProfileApiClient(settings.profile_api_url, timeout=settings.profile_api_timeout),
        pacer=Pacer(settings.item_delay_seconds, settings.batch_delay_seconds),
        max_attempts=settings.max_attempts,
        initial_backoff=settings.initial_backoff_seconds,
        results_dir=settings.results_dir,
    )


def _enqueue_or_run(run: Callable[[], None]) -> bool:
    """Hand the drain to the RQ worker, or run it in a background thread as fallback."""
    try:
        from redis import Redis
        from rq import Queue
        from profile_batch_worker.tasks import drain_pending_jobs

        conn = Redis.from_url(get_settings().redis_url)
        q = Queue("default", connection=conn)
        q.enqueue(drain_pending_jobs, job_timeout="24h")
        logger.info("queue_drain_enqueued")
        return False
    except Exception as e:
        logger.warning("rq_enqueue_failed_running_in_thread", error=str(e))
        return thread_launcher(run)


@lru_cache
def get_job_queue() -> JobQueue:
    """The process-wide job queue."""
    settings = get_settings()
    launcher = _enqueue_or_run if settings.queue_backend == "rq" else thread_launcher
    return JobQueue(build_processor(settings), launcher=launcher)


def get_owner_id() -> int:
    """The single configured owner; authentication is handled upstream."""
    return get_settings().default_owner_id
