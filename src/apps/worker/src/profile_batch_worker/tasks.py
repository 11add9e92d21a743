"""Queue drain task run by the RQ worker."""
import os

import structlog

from profile_batch_core.extract import ProfileApiClient
from profile_batch_core.jobs.processor import BatchProcessor
from profile_batch_core.jobs.queue import JobQueue, inline_launcher
from profile_batch_core.util import Pacer
from profile_batch_worker.settings import get_float, get_int

logger = structlog.get_logger()


def build_queue() -> JobQueue:
    """A queue over the shared repo, configured from the environment."""
    processor = BatchProcessor(
        extractor=ProfileApiClient(
            os.environ.get("PROFILE_API_URL"),
            timeout=get_float("PROFILE_API_TIMEOUT", 30.0),
        ),
        pacer=Pacer(
            item_delay=get_float("ITEM_DELAY_SECONDS", 2.0),
            batch_delay=get_float("BATCH_DELAY_SECONDS", 5.0),
        ),
        max_attempts=get_int("MAX_ATTEMPTS", 3),
        initial_backoff=get_float("INITIAL_BACKOFF_SECONDS", 1.0),
        results_dir=os.environ.get("RESULTS_DIR"),
    )
    return JobQueue(processor, launcher=inline_launcher)


def drain_pending_jobs() -> int:
    """Process every pending job, oldest first, until none is left.

    The API enqueues one of these per submit/resume. RQ runs them one at a
    time, so a later drain finds nothing to do or continues with jobs the
    earlier one did not reach.
    """
    queue = build_queue()
    tracked = queue.recover(requeue_interrupted=False)
    logger.info("drain_started", jobs=tracked)
    queue.start()
    return tracked


def requeue_interrupted_jobs() -> int:
    """Put jobs a dead worker left ``processing`` back to ``pending``."""
    return build_queue().recover(requeue_interrupted=True)
