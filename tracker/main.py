"""Entry point for the tracker service."""

import time
import uuid
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from tracker import config
from tracker.database import init_database, resolve_database_path
from tracker.exceptions import (
    TrackerError,
    PeerAlreadyExistsError,
    PeerNotFoundError,
    InvalidCredentialsError,
    ValidationError,
)
from tracker.liveness_monitor import LivenessMonitor
from tracker.locks import PeerLockRegistry
from tracker.repositories.file_repository import FileRepository
from tracker.repositories.peer_repository import PeerRepository
from tracker.routes.file_routes import router as file_router
from tracker.routes.peer_routes import router as peer_router
from tracker.services.tracker_service import TrackerService

logger = setup_logging('tracker')


def _error_response(request: Request, status_code: int, exc: Exception, code: str) -> JSONResponse:
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"{code}: {exc} [request_id={request_id}] path={request.url.path}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "code": code})


def create_app(
    database_path: Optional[str] = None,
    staleness_seconds: Optional[float] = None,
    sweep_interval: Optional[float] = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """
    Build a tracker application with its own store, locks and sweep.

    Args:
        database_path: SQLite file (defaults to PEERLINK_DATABASE_PATH)
        staleness_seconds: Heartbeat age after which a peer is stale
        sweep_interval: Seconds between liveness sweeps
        clock: Time source returning epoch seconds
    """
    db_path = resolve_database_path(database_path)
    staleness = staleness_seconds if staleness_seconds is not None else config.STALENESS_SECONDS
    interval = sweep_interval if sweep_interval is not None else config.SWEEP_INTERVAL_SECONDS

    app = FastAPI(
        title="PeerLink Tracker",
        description="Presence and discovery directory for peer-to-peer file sharing",
        version="1.0.0"
    )

    peer_repository = PeerRepository(db_path)
    file_repository = FileRepository(db_path)
    locks = PeerLockRegistry()

    app.state.tracker_service = TrackerService(
        peer_repository=peer_repository,
        file_repository=file_repository,
        locks=locks,
        staleness_seconds=staleness,
        clock=clock,
    )
    app.state.liveness_monitor = LivenessMonitor(
        peer_repository=peer_repository,
        file_repository=file_repository,
        locks=locks,
        staleness_seconds=staleness,
        sweep_interval=interval,
        clock=clock,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Middleware to log all HTTP requests and responses.
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        logger.info(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

        response = await call_next(request)

        duration = time.time() - start_time
        logger.info(
            f"Request completed: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
        )

        response.headers["X-Request-ID"] = request_id
        return response

    @app.on_event("startup")
    async def startup_event():
        """
        Initialize database and start the liveness sweep.
        """
        logger.info("Tracker service starting up...")
        init_database(db_path)
        logger.info(f"Database initialized at {db_path}")
        await app.state.liveness_monitor.start()

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Tracker service shutting down...")
        await app.state.liveness_monitor.stop()

    @app.exception_handler(PeerAlreadyExistsError)
    async def peer_already_exists_handler(request: Request, exc: PeerAlreadyExistsError):
        return _error_response(request, status.HTTP_409_CONFLICT, exc, "PEER_ALREADY_EXISTS")

    @app.exception_handler(PeerNotFoundError)
    async def peer_not_found_handler(request: Request, exc: PeerNotFoundError):
        return _error_response(request, status.HTTP_404_NOT_FOUND, exc, "PEER_NOT_FOUND")

    @app.exception_handler(InvalidCredentialsError)
    async def invalid_credentials_handler(request: Request, exc: InvalidCredentialsError):
        return _error_response(request, status.HTTP_401_UNAUTHORIZED, exc, "INVALID_CREDENTIALS")

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return _error_response(request, status.HTTP_400_BAD_REQUEST, exc, "VALIDATION_ERROR")

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields = sorted({".".join(str(part) for part in err["loc"][1:]) for err in exc.errors()})
        detail = f"Missing or invalid fields: {', '.join(fields)}" if fields else "Invalid request"
        return _error_response(request, status.HTTP_400_BAD_REQUEST, detail, "VALIDATION_ERROR")

    @app.exception_handler(TrackerError)
    async def tracker_error_handler(request: Request, exc: TrackerError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.error(f"Tracker error: {exc} [request_id={request_id}] path={request.url.path}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": str(exc), "code": "INTERNAL_ERROR"}
        )

    app.include_router(peer_router)
    app.include_router(file_router)

    @app.get("/")
    async def root():
        """
        Root endpoint for health check.
        """
        return {"message": "PeerLink Tracker API", "status": "running"}

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "service": "tracker",
            "liveness_monitor": app.state.liveness_monitor.running,
        }

    return app


app = create_app()


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "tracker.main:app",
        host=config.TRACKER_HOST,
        port=config.TRACKER_PORT,
    )


if __name__ == "__main__":
    main()
