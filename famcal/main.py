"""famcal - family calendar with reminders and a shared daily checklist."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from famcal.core import db_client
from famcal.core.config import settings
from famcal.core.errors import StoreUnavailableError
from famcal.core.logging import configure_logfire, instrument_fastapi
from famcal.core.scheduler import REMINDER_JOB_NAME, start_scheduler, stop_scheduler
from famcal.core.scheduler_tracker import job_tracker
from famcal.interface.calendar_router import router as calendar_router
from famcal.services.session_service import active_session_count, close_all_sessions, get_notification_sink


logger = logging.getLogger(__name__)


async def initialize_store() -> None:
    """Create the schema and verify the store answers.

    Raises:
        StoreUnavailableError: If the database cannot be opened or queried
    """
    try:
        await db_client.init_db()
    except db_client.DatabaseError as e:
        raise StoreUnavailableError(f"Database initialization failed: {e}") from e

    if not await db_client.ping():
        raise StoreUnavailableError("Database did not answer after initialization")
    logger.info("startup_validation", extra={"service": "store", "status": "ok", "path": settings.sqlite_db_path})


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    configure_logfire()

    try:
        await initialize_store()
    except StoreUnavailableError as e:
        logger.error("startup_validation_failed", extra={"error": str(e)})
        print(f"\n❌ Startup validation failed: {e}\n", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    # Notification permission is read once, here
    sink = get_notification_sink()
    logger.info("startup_validation", extra={"service": "notifications", "enabled": sink.enabled})

    start_scheduler()
    yield
    # Shutdown
    close_all_sessions()
    stop_scheduler()
    await db_client.close_connection()


app = FastAPI(
    title="famcal",
    description="Family calendar with reminders and a shared daily checklist",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers
app.include_router(calendar_router)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy", "sessions": active_session_count()}, status_code=200)


@app.get("/health/scheduler")
async def scheduler_health_check() -> JSONResponse:
    """Scheduler health check endpoint with reminder job status."""
    job_status = job_tracker.get_job_status(REMINDER_JOB_NAME)
    overall_status = "degraded" if job_status["consecutive_failures"] > 0 else "healthy"

    return JSONResponse(
        content={"status": overall_status, "jobs": {REMINDER_JOB_NAME: job_status}},
        status_code=200 if overall_status == "healthy" else 503,
    )
