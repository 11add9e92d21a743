"""FastAPI application entrypoint."""
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from profile_batch_api.logging import configure_logging
from profile_batch_api.routers import auth, exports, health, jobs, stats, uploads
from profile_batch_api.services import get_job_queue
from profile_batch_api.settings import get_settings
from profile_batch_core.jobs import init_db

configure_logging()
logger = structlog.get_logger()

app = FastAPI(title="Profile Batch Extraction API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/api")
app.include_router(auth.router, prefix="/api")
app.include_router(uploads.router, prefix="/api")
app.include_router(jobs.router, prefix="/api")
app.include_router(stats.router, prefix="/api")
app.include_router(exports.router, prefix="/api")


@app.on_event("startup")
def startup():
    """Initialize on startup."""
    logger.info("initializing_database")
    init_db()
    if get_settings().queue_backend == "thread":
        queue = get_job_queue()
        recovered = queue.recover()
        if recovered:
            logger.info("resuming_unfinished_jobs", jobs=recovered)
            queue.start()
