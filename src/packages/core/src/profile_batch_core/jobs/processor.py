"""Per-job batch extraction loop."""
import time
from datetime import timedelta
from typing import Any, Callable

import structlog

from profile_batch_core.export import save_job_results
from profile_batch_core.extract import ProfileExtractor, classify_error, is_retryable
from profile_batch_core.ingest import resolve_profile_urls
from profile_batch_core.jobs import repo
from profile_batch_core.jobs.models import (
    COMPLETED,
    FAILED,
    ITEM_FAILED,
    ITEM_PENDING,
    ITEM_PROCESSING,
    ITEM_RETRYING,
    ITEM_SUCCESS,
    PAUSED,
    PENDING,
    PROCESSING,
)
from profile_batch_core.util.pacing import Pacer
from profile_batch_core.util.time import to_iso, utc_now, utc_now_iso

logger = structlog.get_logger()

MAX_ATTEMPTS = 3
INITIAL_BACKOFF_SECONDS = 1.0

NO_URLS_MESSAGE = "No profile URLs found in the uploaded file"
AUTH_REQUIRED_MESSAGE = "Authentication required: no access token stored for this user"

# Items a crashed run may have left mid-flight are picked up again.
_RESUMABLE = (ITEM_PENDING, ITEM_PROCESSING, ITEM_RETRYING)


class JobPreconditionError(Exception):
    """The job cannot start at all (no items, no credential)."""


class BatchProcessor:
    """Runs one job: resolve items, extract them batch by batch, export.

    Job status in the repo is re-read before every batch; anything other
    than ``processing`` (paused, stopped) halts the run there. Items of
    the current batch always finish first.
    """

    def __init__(
        self,
        extractor: ProfileExtractor,
        resolve_urls: Callable[[str], list[str]] = resolve_profile_urls,
        pacer: Pacer | None = None,
        max_attempts: int = MAX_ATTEMPTS,
        initial_backoff: float = INITIAL_BACKOFF_SECONDS,
        results_dir: str | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.extractor = extractor
        self.resolve_urls = resolve_urls
        self.pacer = pacer or Pacer()
        self.max_attempts = max(1, max_attempts)
        self.initial_backoff = initial_backoff
        self.results_dir = results_dir
        self.clock = clock

    def process(self, job_id: int) -> str | None:
        """Advance a pending job as far as it will go. Returns the job's status afterwards."""
        job = repo.get_job(job_id)
        if job is None or job["status"] != PENDING:
            return job["status"] if job else None

        log = logger.bind(job_id=job_id)
        try:
            first_run = repo.count_items(job_id) == 0
            urls = self._resolve(job) if first_run else []
            token = self._access_token(job)
        except JobPreconditionError as e:
            log.warning("job_precondition_failed", error=str(e))
            self._fail(job_id, str(e), from_statuses=(PENDING,))
            return repo.get_job_status(job_id)

        if not repo.claim_job(job_id):
            log.info("job_claim_lost")
            return repo.get_job_status(job_id)

        try:
            if first_run:
                total = repo.create_items(job_id, urls)
                repo.update_job(job_id, total_items=total, started_at=utc_now_iso())
                log.info("job_started", total=total, batch_size=job["batch_size"])
            else:
                log.info("job_resumed", processed=job["processed"], total=job["total_items"])
            return self._run(repo.get_job(job_id), token)
        except Exception as e:
            log.exception("job_failed", error=str(e))
            # A job stopped meanwhile keeps its stop message.
            self._fail(job_id, str(e) or type(e).__name__, from_statuses=(PROCESSING, PAUSED))
            return repo.get_job_status(job_id)

    def _resolve(self, job: dict[str, Any]) -> list[str]:
        try:
            urls = self.resolve_urls(job["file_path"])
        except (ValueError, OSError) as e:
            raise JobPreconditionError(f"Could not read uploaded file: {e}") from e
        if not urls:
            raise JobPreconditionError(NO_URLS_MESSAGE)
        return urls

    def _access_token(self, job: dict[str, Any]) -> str:
        user = repo.get_user(job["owner_id"])
        if not user or not user.get("access_token"):
            raise JobPreconditionError(AUTH_REQUIRED_MESSAGE)
        return user["access_token"]

    def _run(self, job: dict[str, Any], token: str) -> str:
        job_id = job["id"]
        log = logger.bind(job_id=job_id)
        items = [i for i in repo.list_items_by_job(job_id) if i["status"] in _RESUMABLE]
        batch_size = max(1, job["batch_size"] or 1)
        batches = [items[i : i + batch_size] for i in range(0, len(items), batch_size)]

        progress = _Progress(
            total=job["total_items"],
            successful=job["successful"] or 0,
            failed=job["failed"] or 0,
            active_before=job["active_seconds"] or 0.0,
            run_started=self.clock(),
        )

        for index, batch in enumerate(batches):
            status = repo.get_job_status(job_id)
            if status != PROCESSING:
                log.info("job_halted", status=status, batch=index, processed=progress.processed)
                return status
            log.info("batch_started", batch=index + 1, batches=len(batches), size=len(batch))

            for position, item in enumerate(batch):
                if self._process_item(item, token):
                    progress.successful += 1
                else:
                    progress.failed += 1
                repo.update_job(job_id, **progress.snapshot(self.clock()))
                if position < len(batch) - 1:
                    self.pacer.after_item()

            if index < len(batches) - 1:
                self.pacer.after_batch()

        return self._complete(job_id, progress)

    def _process_item(self, item: dict[str, Any], token: str) -> bool:
        """Extract one item with bounded retry. True on success."""
        item_id = item["id"]
        url = item["url"]
        delay = self.initial_backoff
        attempt = 0
        repo.update_item(item_id, ITEM_PROCESSING, last_attempt=utc_now_iso())
        while True:
            attempt += 1
            try:
                record = self.extractor.extract(url, token)
                break
            except Exception as e:
                kind = classify_error(e)
                message = str(e) or "Unknown error"
                if not is_retryable(kind) or attempt >= self.max_attempts:
                    repo.update_item(
                        item_id,
                        ITEM_FAILED,
                        error_kind=kind,
                        error_message=message,
                        retry_count=attempt - 1,
                        last_attempt=utc_now_iso(),
                    )
                    logger.warning("item_failed", item_id=item_id, url=url, kind=kind, attempts=attempt)
                    return False
                repo.update_item(
                    item_id,
                    ITEM_RETRYING,
                    error_kind=kind,
                    error_message=message,
                    retry_count=attempt,
                    last_attempt=utc_now_iso(),
                )
                logger.info("item_retrying", item_id=item_id, kind=kind, attempt=attempt, delay=delay)
                self.pacer.sleep(delay)
                delay *= 2

        repo.update_item(
            item_id,
            ITEM_SUCCESS,
            payload=record.model_dump(),
            error_kind=None,
            error_message=None,
            retry_count=attempt - 1,
            extracted_at=utc_now_iso(),
        )
        return True

    def _complete(self, job_id: int, progress: "_Progress") -> str:
        status = repo.get_job_status(job_id)
        if status != PROCESSING:
            # Paused or stopped during the last batch.
            logger.info("job_halted", job_id=job_id, status=status, processed=progress.processed)
            return status
        result_path = save_job_results(job_id, repo.list_items_by_job(job_id), self.results_dir)
        if not repo.transition_job(job_id, (PROCESSING,), COMPLETED):
            return repo.get_job_status(job_id)
        repo.update_job(
            job_id,
            result_path=result_path,
            completed_at=utc_now_iso(),
            estimated_completion=None,
        )
        logger.info(
            "job_completed",
            job_id=job_id,
            successful=progress.successful,
            failed=progress.failed,
        )
        return COMPLETED

    def _fail(self, job_id: int, message: str, from_statuses: tuple[str, ...]) -> None:
        if not repo.transition_job(job_id, from_statuses, FAILED):
            return
        repo.update_job(job_id, FAILED, error_message=message, completed_at=utc_now_iso())


class _Progress:
    """Counters for one run. Paused time is never counted as active."""

    def __init__(self, total: int, successful: int, failed: int, active_before: float, run_started: float):
        self.total = total
        self.successful = successful
        self.failed = failed
        self.active_before = active_before
        self.run_started = run_started

    @property
    def processed(self) -> int:
        return self.successful + self.failed

    def snapshot(self, now: float) -> dict[str, Any]:
        active = self.active_before + max(0.0, now - self.run_started)
        remaining = max(0, self.total - self.processed)
        rate = self.processed / (active / 60) if active > 0 else None
        eta = None
        if rate and remaining > 0:
            eta = to_iso(utc_now() + timedelta(minutes=remaining / rate))
        return {
            "processed": self.processed,
            "successful": self.successful,
            "failed": self.failed,
            "active_seconds": active,
            "processing_rate": round(rate, 1) if rate is not None else None,
            "estimated_completion": eta,
        }
