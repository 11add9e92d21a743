"""RQ worker entrypoint."""
import structlog
from redis import Redis
from rq import Queue, Worker

from profile_batch_core.jobs import init_db
from profile_batch_worker.settings import get_redis_url
from profile_batch_worker.tasks import drain_pending_jobs, requeue_interrupted_jobs

logger = structlog.get_logger()


def main():
    """Start the worker."""
    init_db()
    # Jobs left processing by a dead worker restart from their next unprocessed item.
    recovered = requeue_interrupted_jobs()
    conn = Redis.from_url(get_redis_url())
    if recovered:
        logger.info("enqueueing_recovered_jobs", jobs=recovered)
        Queue("default", connection=conn).enqueue(drain_pending_jobs, job_timeout="24h")
    worker = Worker(["default"], connection=conn)
    worker.work()


if __name__ == "__main__":
    main()
