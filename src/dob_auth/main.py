# src/dob_auth/main.py
"""Main entry point for the DOB Validator auth service."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dob_auth.api import auth_router
from dob_auth.core.settings import settings
from dob_auth.db.session import create_tables
from dob_auth.db.time import utcnow
from dob_auth.services.auth_service import build_auth_service
from dob_auth.services.cleanup import CleanupScheduler
from dob_auth.services.errors import AuthError, InvalidInput, StoreUnavailable

RETRY_AFTER_SECONDS = "5"

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Wallet challenge/response authentication API",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Include API routers
app.include_router(auth_router, prefix="/api")


def _error_response(
    status_code: int, message: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    headers: dict[str, str] = {}
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers["WWW-Authenticate"] = "Bearer"
    if isinstance(exc, StoreUnavailable):
        headers["Retry-After"] = RETRY_AFTER_SECONDS
        logger.warning("%s %s: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)

    message = exc.client_message if isinstance(exc, InvalidInput) else exc.public_message
    return _error_response(exc.status_code, message, headers or None)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    missing = sorted(
        {str(error["loc"][-1]) for error in exc.errors() if error.get("loc")}
    )
    logger.info("%s %s invalid body fields: %s", request.method, request.url.path, missing)
    message = f"Invalid or missing fields: {', '.join(missing)}" if missing else "Invalid request data"
    return _error_response(status.HTTP_400_BAD_REQUEST, message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@app.on_event("startup")
async def on_startup() -> None:
    create_tables()
    service = build_auth_service(settings)
    app.state.auth_service = service
    if settings.cleanup_enabled:
        scheduler = CleanupScheduler(
            service.challenges,
            service.sessions,
            interval_seconds=settings.cleanup_interval_seconds,
        )
        await scheduler.start()
        app.state.cleanup_scheduler = scheduler
    else:
        app.state.cleanup_scheduler = None
    logger.info("%s %s started", settings.app_name, settings.app_version)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    scheduler: CleanupScheduler | None = getattr(app.state, "cleanup_scheduler", None)
    if scheduler:
        await scheduler.stop()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok", "timestamp": utcnow().isoformat()}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("dob_auth.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
