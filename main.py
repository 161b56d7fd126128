from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Optional
import logging

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, RedirectResponse
from starlette.concurrency import run_in_threadpool

from config.settings import Settings, get_environment_info, get_settings, validate_startup
from errors.exceptions import resource_not_found
from errors.handlers import register_exception_handlers
from ingestion.service import LocationBatch, LocationIngestionService
from middleware.request_id import RequestIDMiddleware
from normalization.timezones import resolve_reference_timezone
from storage.day_log import DayPartitionedLogWriter, StorageConfig
from telemetry.service import initialize_telemetry

logger = logging.getLogger(__name__)

router = APIRouter()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    settings = app.state.settings
    logger.info(
        "Starting Location Ingestor",
        extra={"extra_data": {
            **get_environment_info(),
            "storage_base_dir": str(settings.storage_base_dir),
            "reference_timezone": app.state.reference_timezone.key,
            "timezone_degraded": app.state.reference_timezone.degraded,
        }}
    )
    # Fail before accepting requests if the log directory is unusable
    validate_startup(settings)

    yield

    logger.info("Shutting down Location Ingestor")


def create_app(
    settings: Optional[Settings] = None,
    clock: Optional[Callable[[], datetime]] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    All collaborators are created here from the given settings and kept on
    app.state; nothing is shared through module globals.

    Args:
        settings: Application settings, loaded from the environment if omitted
        clock: Optional clock for the log writer (used by tests)
    """
    settings = settings or get_settings()
    telemetry_service = initialize_telemetry(settings)

    reference_timezone = resolve_reference_timezone(
        settings.reference_timezone,
        settings.reference_timezone_aliases,
    )
    log_writer = DayPartitionedLogWriter(StorageConfig.from_settings(settings), clock=clock)
    ingestion_service = LocationIngestionService(
        writer=log_writer,
        reference_tz=reference_timezone.tzinfo,
        telemetry=telemetry_service,
    )

    app = FastAPI(title="Location Ingestor", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.reference_timezone = reference_timezone
    app.state.log_writer = log_writer
    app.state.ingestion_service = ingestion_service

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Accept", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        max_age=3600,
    )
    app.add_middleware(RequestIDMiddleware)

    app.include_router(router)
    return app


@router.get("/", include_in_schema=False)
async def root():
    """Send browsers to the interactive API docs."""
    return RedirectResponse(url="/docs", status_code=302)


@router.get("/health")
async def health_check(request: Request):
    """Liveness check, including whether the reference timezone is degraded."""
    reference_timezone = request.app.state.reference_timezone
    return {
        "status": "ok",
        "reference_timezone": reference_timezone.key,
        "timezone_degraded": reference_timezone.degraded,
    }


@router.post("/api/locations")
async def post_locations(batch: LocationBatch, request: Request):
    """
    Ingest a batch of device location reports.

    Each item is validated on its own. Valid items are appended to today's
    log, invalid ones are reported back with a message; the batch as a
    whole still returns 200.

    Returns:
        dict: received, ok and fail counts plus per-item results in input order

    Raises:
        AppException: 400 if 'locations' is missing or empty,
            503 if the log cannot be written
    """
    service: LocationIngestionService = request.app.state.ingestion_service

    logger.info(
        f"📍 Location batch received with {len(batch.locations or [])} items",
        extra={"extra_data": {"batch_size": len(batch.locations or [])}}
    )

    # File appends block; keep them off the event loop
    result = await run_in_threadpool(service.process_batch, batch.locations)
    return result.to_response()


@router.get("/api/logs/today")
async def get_today_log(request: Request):
    """
    Return today's log file as plain text.

    Raises:
        AppException: 404 if nothing has been logged today,
            503 if the file cannot be read
    """
    writer: DayPartitionedLogWriter = request.app.state.log_writer

    content = await run_in_threadpool(writer.read_today)
    if content is None:
        path = writer.today_path()
        raise resource_not_found(
            message="No log file for today.",
            details={"path": str(path)}
        )

    return PlainTextResponse(content)


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
