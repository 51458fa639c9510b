"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Easier to test with different configurations
- Explicit about initialization order

For local development:
    uvicorn src.main:app --reload

For production:
    gunicorn src.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes import achievements, bookings, health, sessions, users
from .config.settings import get_settings
from .core.gym.errors import (
    ConflictError,
    ForbiddenError,
    GymError,
    InvalidRequestError,
    NotFoundError,
)

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=get_settings().log_level.upper(),
)

logger = logging.getLogger(__name__)

# Most specific family first
ERROR_STATUS_CODES: list[tuple[type[GymError], int]] = [
    (NotFoundError, 404),
    (ConflictError, 409),
    (ForbiddenError, 403),
    (InvalidRequestError, 422),
]


def status_code_for(exc: GymError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Runs on startup and shutdown. FastAPI calls this automatically.
    """
    settings = get_settings()

    logger.info(
        "JCU Gym API starting",
        extra={
            "version": settings.api_version,
            "mock_mode": settings.snowflake_mock_mode,
            "timezone": settings.gym_timezone,
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )
        # Keep serving: /health/ready reports the problem

    yield

    logger.info("JCU Gym API shutting down")


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Session booking and achievements for the JCU gym.

        ## Authentication

        All endpoints except health require an API key in the `X-API-Key`
        header. Admin keys additionally unlock approvals, check-ins and
        achievement overrides. The acting member is passed in the request
        body or the `X-User-Id` header.

        ## Workflow

        1. **Register**: `POST /api/v1/users` with a university email
        2. **Browse the timetable**: `GET /api/v1/sessions`
        3. **Book a seat**: `POST /api/v1/bookings`
        4. **Check in**: `POST /api/v1/bookings/{booking_id}/complete` (admin)
        5. **Track progress**: `GET /api/v1/achievements?user_id=...`
        6. **Claim an achievement**: `POST /api/v1/achievements/grant`
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Configure allowed origins via CORS_ORIGINS environment variable
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        sessions.router,
        prefix="/api/v1/sessions",
        tags=["Sessions"],
    )

    app.include_router(
        bookings.router,
        prefix="/api/v1/bookings",
        tags=["Bookings"],
    )

    app.include_router(
        achievements.router,
        prefix="/api/v1/achievements",
        tags=["Achievements"],
    )

    app.include_router(
        users.router,
        prefix="/api/v1/users",
        tags=["Users"],
    )

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": "JCU Gym API",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    @app.exception_handler(GymError)
    async def gym_error_handler(request: Request, exc: GymError):
        """Translate domain errors into HTTP responses."""
        status_code = status_code_for(exc)

        logger.warning(
            "Request rejected",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error_type": type(exc).__name__,
                "status_code": status_code,
                "error": exc.message,
            }
        )

        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        In production, this prevents stack traces from leaking to clients.
        We log the full error server-side but return a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error. Please contact support if this persists."
            }
        )

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
        }
    )

    return app


# This is what uvicorn/gunicorn will import
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
