"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() function returns configured app
   - Tests build their own instance and override the document store

2. Lifespan Events
   - startup: open the document store, create its schema (if reachable),
     start the collection bootstrap in the background
   - shutdown: stop the bootstrap if still running, close the store

3. Middleware Stack
   - Rate limiting (slowapi)
   - Request timeout: bounds waits on the document store (504)
   - CORS: Allow the browser frontend to call the API

4. Exception Handlers
   - Every failure uses the same envelope: {"success": false, "error": ...}
   - Validation failures list every violation (400)
   - Store failures hide internal details unless debug is on outside
     production (503)
"""

import asyncio
import contextlib
import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import get_settings
from app.exceptions import NotFoundError, StoreUnavailableError, ValidationError
from app.middleware import TimeoutMiddleware
from app.routers import restaurants_router, reviews_router
from app.services.bootstrap import ensure_collections
from app.services.rate_limiter import limiter, rate_limit_exceeded_handler
from app.store import DocumentStore

# =============================================================================
# Logging Configuration
# =============================================================================
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Code before yield: Runs on startup
    Code after yield: Runs on shutdown

    Collection bootstrapping runs as a background task: requests are served
    while it is still in flight. An unreachable store does not stop the
    service from starting; requests get 503 and health reports DEGRADED
    until it comes back.
    """
    # ----- STARTUP -----
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Environment: {settings.environment}, debug: {settings.debug}")

    store = DocumentStore.from_url(settings.database_url)
    try:
        await store.create_schema()
    except StoreUnavailableError:
        logger.error("Document store unreachable at startup; serving in degraded mode")
    app.state.document_store = store

    app.state.bootstrap_task = asyncio.create_task(
        ensure_collections(store, settings.bootstrap_collections_set)
    )

    yield  # Application runs here

    # ----- SHUTDOWN -----
    logger.info(f"Shutting down {settings.app_name}...")

    task = app.state.bootstrap_task
    if not task.done():
        task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task

    await store.close()


# =============================================================================
# Error Envelope
# =============================================================================
def error_response(status_code: int, error: str, **extra) -> JSONResponse:
    content = {"success": False, "error": error}
    content.update({key: value for key, value in extra.items() if value is not None})
    return JSONResponse(status_code=status_code, content=content)


def format_request_errors(exc: RequestValidationError) -> list[str]:
    """Turn pydantic request errors into violation strings."""
    violations = []
    for error in exc.errors():
        # drop the leading "body"/"query"/"path" location segment
        location = ".".join(str(part) for part in error.get("loc", ())[1:])
        message = error.get("msg", "Invalid value")
        violations.append(f"{location}: {message}" if location else message)
    return violations


# =============================================================================
# Application Factory
# =============================================================================
def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## KoboWave API

Star-rated reviews of movies and restaurants.

### Features
- **Reviews**: create, list, filter, update and delete reviews
- **Restaurants**: browse the restaurant listings to review

### Authentication
Optional. Send an identity provider token as `Authorization: Bearer <token>`
to attach reviews to your account.
        """,
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.started_at = time.monotonic()
    expose_errors = settings.debug and not settings.is_production

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # -------------------------------------------------------------------------
    # Request Timeout
    # -------------------------------------------------------------------------
    app.add_middleware(
        TimeoutMiddleware,
        timeout_seconds=settings.request_timeout_seconds,
        excluded_paths=(f"{settings.api_prefix}/health",),
    )

    # -------------------------------------------------------------------------
    # CORS Middleware
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Accept"],
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(ValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: ValidationError,
    ) -> JSONResponse:
        return error_response(400, "Validation failed", violations=exc.violations)

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        return error_response(400, "Validation failed", violations=format_request_errors(exc))

    @app.exception_handler(NotFoundError)
    async def not_found_exception_handler(
        request: Request,
        exc: NotFoundError,
    ) -> JSONResponse:
        return error_response(404, f"{exc.resource} not found")

    @app.exception_handler(StoreUnavailableError)
    async def store_exception_handler(
        request: Request,
        exc: StoreUnavailableError,
    ) -> JSONResponse:
        """
        Handle document store failures.

        Logs the actual error for debugging while hiding details from users.
        """
        logger.error(f"Document store unavailable: {exc!r} (cause: {exc.__cause__!r})")
        return error_response(
            503,
            "Service temporarily unavailable",
            detail=str(exc.__cause__ or exc) if expose_errors else None,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        response = error_response(exc.status_code, str(exc.detail))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """
        Catch-all exception handler.

        In production, hide internal errors from users.
        In debug mode, show more details.
        """
        logger.error(f"Unhandled error: {exc}", exc_info=True)
        return error_response(
            500,
            "Internal Server Error",
            detail=str(exc) if expose_errors else None,
        )

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    app.include_router(reviews_router, prefix=settings.api_prefix)
    app.include_router(restaurants_router, prefix=settings.api_prefix)

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        f"{settings.api_prefix}/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the API is running and the document store is reachable.",
    )
    async def health_check(request: Request) -> dict:
        """
        Health check endpoint.

        Used by load balancers, container probes and monitoring.
        """
        store = getattr(request.app.state, "document_store", None)
        store_connected = await store.ping() if store is not None else False

        return {
            "status": "OK" if store_connected else "DEGRADED",
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
            "timestamp": datetime.now(UTC).isoformat(),
            "uptime": round(time.monotonic() - request.app.state.started_at, 3),
            "store": {"connected": store_connected},
        }

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
        description="Welcome message and API information.",
    )
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.app_version,
            "docs": "/docs",
            "health": f"{settings.api_prefix}/health",
            "endpoints": [
                f"GET {settings.api_prefix}/reviews",
                f"POST {settings.api_prefix}/reviews",
                f"GET {settings.api_prefix}/reviews/{{id}}",
                f"PUT {settings.api_prefix}/reviews/{{id}}",
                f"DELETE {settings.api_prefix}/reviews/{{id}}",
                f"GET {settings.api_prefix}/restaurants",
            ],
        }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# This is what uvicorn imports: uvicorn app.main:app
app = create_app()


# =============================================================================
# Development Server
# =============================================================================
# python -m app.main runs a reloading dev server
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
