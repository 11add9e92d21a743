"""In-process job queue: one job advances at a time, FIFO."""
import threading
from typing import Callable

import structlog

from profile_batch_core.jobs import repo
from profile_batch_core.jobs.models import (
    FAILED,
    PAUSED,
    PENDING,
    PROCESSING,
    TERMINAL_STATUSES,
    JobSpec,
)
from profile_batch_core.jobs.processor import BatchProcessor
from profile_batch_core.util.time import utc_now_iso

logger = structlog.get_logger()

STOPPED_MESSAGE = "Stopped by user"

# A launcher starts ``run`` somewhere and returns True if it runs in this
# process; False means the work was handed off, and this queue stays idle
# and stops tracking jobs.
Launcher = Callable[[Callable[[], None]], bool]


def thread_launcher(run: Callable[[], None]) -> bool:
    """Run the queue loop on a daemon thread so callers never block."""
    thread = threading.Thread(target=run, name="job-queue", daemon=True)
    thread.start()
    return True


def inline_launcher(run: Callable[[], None]) -> bool:
    """Run the queue loop in the caller's thread."""
    run()
    return True


class JobQueue:
    """Holds submitted jobs and drives them through a BatchProcessor.

    The job set is kept in insertion order; the loop always picks the
    first ``pending`` job. Status lives in the repo, so a pause or stop
    written by another process is seen at the next batch checkpoint.
    """

    def __init__(self, processor: BatchProcessor, launcher: Launcher | None = None):
        self.processor = processor
        self._launcher = launcher or thread_launcher
        self._jobs: dict[int, JobSpec] = {}
        self._lock = threading.Lock()
        self._processing = False

    @property
    def is_processing(self) -> bool:
        return self._processing

    def job_ids(self) -> list[int]:
        with self._lock:
            return list(self._jobs)

    def submit(self, spec: JobSpec) -> int:
        """Enqueue a job as pending and wake the loop if idle."""
        job = repo.create_job(
            owner_id=spec.owner_id,
            file_name=spec.file_name,
            file_path=spec.file_path,
            batch_size=spec.batch_size,
            total_items=spec.total_items,
        )
        job_id = job["id"]
        with self._lock:
            self._jobs[job_id] = spec
        logger.info("job_submitted", job_id=job_id, file_name=spec.file_name, batch_size=spec.batch_size)
        self._start_processing()
        return job_id

    def pause(self, job_id: int) -> bool:
        """processing -> paused. No-op for any other status."""
        changed = repo.transition_job(job_id, (PROCESSING,), PAUSED)
        if changed:
            logger.info("job_paused", job_id=job_id)
        return changed

    def stop(self, job_id: int) -> bool:
        """Any non-terminal job -> failed."""
        changed = repo.transition_job(job_id, (PENDING, PROCESSING, PAUSED), FAILED)
        if changed:
            repo.update_job(job_id, error_message=STOPPED_MESSAGE, completed_at=utc_now_iso())
            logger.info("job_stopped", job_id=job_id)
        return changed

    def resume(self, job_id: int) -> bool:
        """paused -> pending, then wake the loop if idle."""
        if not repo.transition_job(job_id, (PAUSED,), PENDING):
            return False
        job = repo.get_job(job_id)
        with self._lock:
            if job_id not in self._jobs and job is not None:
                self._jobs[job_id] = _spec_from_row(job)
        logger.info("job_resumed", job_id=job_id)
        self._start_processing()
        return True

    def recover(self, requeue_interrupted: bool = True) -> int:
        """Rebuild the job set from the repo after a restart.

        Jobs left ``processing`` by a dead process go back to ``pending``
        when ``requeue_interrupted`` is set; they resume from their next
        unprocessed item. Returns the number of jobs tracked.
        """
        rows = repo.list_unfinished_jobs()
        with self._lock:
            for row in rows:
                if requeue_interrupted and row["status"] == PROCESSING:
                    if repo.transition_job(row["id"], (PROCESSING,), PENDING):
                        logger.warning("job_requeued", job_id=row["id"])
                self._jobs.setdefault(row["id"], _spec_from_row(row))
            count = len(self._jobs)
        logger.info("queue_recovered", jobs=count)
        return count

    def start(self) -> None:
        """Wake the loop if there is pending work and it is idle."""
        self._start_processing()

    def run_pending(self) -> None:
        """The queue loop: process pending jobs one at a time until none is left."""
        try:
            while True:
                with self._lock:
                    job_id = self._next_job()
                    if job_id is None:
                        self._processing = False
                        logger.info("queue_idle")
                        return
                status = self.processor.process(job_id)
                logger.info("job_run_finished", job_id=job_id, status=status)
        except Exception:
            with self._lock:
                self._processing = False
            raise

    def _start_processing(self) -> None:
        with self._lock:
            if self._processing:
                return
            self._processing = True
        if not self._launcher(self.run_pending):
            # The other side rebuilds its job set from the repo.
            with self._lock:
                self._processing = False
                self._jobs.clear()
            logger.info("queue_handed_off")

    def _next_job(self) -> int | None:
        # Caller holds the lock.
        for job_id in list(self._jobs):
            status = repo.get_job_status(job_id)
            if status is None or status in TERMINAL_STATUSES:
                del self._jobs[job_id]
            elif status == PENDING:
                return job_id
        return None


def _spec_from_row(row: dict) -> JobSpec:
    return JobSpec(
        owner_id=row["owner_id"],
        file_name=row["file_name"],
        file_path=row["file_path"],
        batch_size=row["batch_size"] or 1,
        total_items=row["total_items"] or 0,
    )
