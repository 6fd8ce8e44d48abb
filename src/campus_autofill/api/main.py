"""Main FastAPI application for Campus Autofill."""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from campus_autofill import __version__
from campus_autofill.api import routes as routes_module
from campus_autofill.api.models import ErrorResponse
from campus_autofill.api.routes import all_routers
from campus_autofill.config import settings
from campus_autofill.core.errors import AutofillError, PageUnavailable, ProfileNotFound, SessionNotFound
from campus_autofill.core.profiles import JsonProfileStore
from campus_autofill.core.session import SessionManager
from campus_autofill.utils.logging import configure_logging, get_logger

# Configure logging
configure_logging()
logger = get_logger(__name__)

ERROR_STATUS = (
    (SessionNotFound, 404),
    (ProfileNotFound, 404),
    (PageUnavailable, 410),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Campus Autofill API")

    if routes_module.session_manager is None:
        routes_module.session_manager = SessionManager()
    if routes_module.profile_store is None:
        routes_module.profile_store = JsonProfileStore()

    logger.info("Application startup completed successfully")

    yield

    logger.info("Shutting down Campus Autofill API")
    await routes_module.session_manager.shutdown()
    logger.info("Application shutdown completed successfully")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Campus Autofill API",
        description="Form autofill sessions with human confirmation before submit",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan
    )

    setup_middleware(app)
    setup_exception_handlers(app)

    for router in all_routers:
        app.include_router(router, prefix="/api/v1")

    @app.get("/")
    async def root():
        return {
            "name": "Campus Autofill API",
            "version": __version__,
            "status": "running",
            "docs": "/docs" if settings.debug else "disabled"
        }

    return app


def setup_middleware(app: FastAPI) -> None:
    """Setup application middleware."""

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    if settings.allowed_hosts:
        app.add_middleware(
            TrustedHostMiddleware,
            allowed_hosts=settings.allowed_hosts
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = asyncio.get_running_loop().time()

        logger.info(
            "Request started",
            method=request.method,
            url=str(request.url),
            client_ip=request.client.host if request.client else None
        )

        response = await call_next(request)

        logger.info(
            "Request completed",
            method=request.method,
            url=str(request.url),
            status_code=response.status_code,
            duration_seconds=asyncio.get_running_loop().time() - start_time
        )
        return response


def status_for(exc: AutofillError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


def setup_exception_handlers(app: FastAPI) -> None:
    """Setup global exception handlers."""

    @app.exception_handler(AutofillError)
    async def autofill_exception_handler(request: Request, exc: AutofillError):
        status_code = status_for(exc)
        logger.warning(
            "Autofill error",
            error_type=type(exc).__name__,
            status_code=status_code,
            message=str(exc),
            url=str(request.url)
        )

        details = None
        if isinstance(exc, PageUnavailable) and exc.snapshot:
            details = {"snapshotBytes": len(exc.snapshot)}

        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=type(exc).__name__,
                message=str(exc),
                details=details,
                timestamp=datetime.now(timezone.utc)
            ).model_dump(mode="json")
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger.warning(
            "HTTP exception",
            status_code=exc.status_code,
            detail=exc.detail,
            url=str(request.url)
        )

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error="HTTPException",
                message=str(exc.detail),
                timestamp=datetime.now(timezone.utc)
            ).model_dump(mode="json")
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(
            "Validation error",
            errors=exc.errors(),
            url=str(request.url)
        )

        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error="ValidationError",
                message="Request validation failed",
                details={"validation_errors": [str(error) for error in exc.errors()]},
                timestamp=datetime.now(timezone.utc)
            ).model_dump(mode="json")
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception",
            error=str(exc),
            error_type=type(exc).__name__,
            url=str(request.url)
        )

        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="InternalServerError",
                message="An unexpected error occurred",
                details={"error_type": type(exc).__name__} if settings.debug else None,
                timestamp=datetime.now(timezone.utc)
            ).model_dump(mode="json")
        )


# Create the application instance
app = create_app()
