"""
FastAPI application entry point for the User Order API.

This module provides the main FastAPI application with:
- User and order endpoints mounted under the configured prefix
- Health and readiness endpoints
- Request logging with correlation IDs
- Prometheus metrics
- Uniform response envelopes for every error
- MongoDB client management
- Graceful startup and shutdown
"""

import structlog
import uvicorn
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Any, Optional

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from prometheus_client import CollectorRegistry, CONTENT_TYPE_LATEST, REGISTRY

from api.src.config import get_settings, Settings
from api.src.dependencies import (
    init_mongo_client,
    close_mongo_client,
    get_mongo_client,
    get_users_collection,
)
from api.src.errors import ApiError, InternalError
from api.src.middleware.request_logging import RequestLoggingMiddleware
from api.src.models.envelope import error_body
from api.src.repositories.user_repo import UserRepository
from api.src.routers.users import router as users_router
from shared.logging import configure_logging
from shared.metrics import setup_metrics, get_metrics_handler

# Initialize logger
logger = structlog.get_logger(__name__)


def format_request_error(exc: RequestValidationError) -> str:
    """First error of a request validation failure as ``"<loc>: <msg>"``."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    error = errors[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error['msg']}" if location else error["msg"]


def create_app(
    settings: Optional[Settings] = None,
    metrics_registry: Optional[CollectorRegistry] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use; defaults to ``get_settings()``
        metrics_registry: Prometheus registry; defaults to the global one

    Returns:
        Configured application
    """
    settings = settings or get_settings()
    registry = metrics_registry if metrics_registry is not None else REGISTRY
    metrics = setup_metrics(registry) if settings.metrics_enabled else None

    # ========================================================================
    # Lifespan Management
    # ========================================================================

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        Application lifespan manager for startup and shutdown events.

        Handles:
        - Logging configuration
        - MongoDB client initialization and unique indexes
        - Graceful shutdown and resource cleanup
        """
        configure_logging(
            log_level=settings.log_level,
            json_logs=settings.json_logs,
            service_name=settings.app_name,
            environment=settings.environment,
        )

        logger.info(
            "application_starting",
            app_name=settings.app_name,
            version=settings.app_version,
            environment=settings.environment
        )

        try:
            await init_mongo_client()
            await UserRepository(get_users_collection()).ensure_indexes()

            logger.info(
                "application_started",
                app_name=settings.app_name,
                api_prefix=settings.api_prefix
            )

            yield

        except Exception as e:
            logger.error("application_startup_failed", error=str(e), exc_info=True)
            raise

        finally:
            logger.info("application_shutting_down")

            try:
                await close_mongo_client()
                logger.info("application_shutdown_complete")
            except Exception as e:
                logger.error("application_shutdown_failed", error=str(e), exc_info=True)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "CRUD API for users and the orders embedded in them, "
            "backed by MongoDB."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
        debug=settings.debug,
    )

    # ========================================================================
    # Middleware Configuration
    # ========================================================================

    if settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=settings.cors_allow_credentials,
            allow_methods=settings.cors_allow_methods,
            allow_headers=settings.cors_allow_headers,
        )

    app.add_middleware(RequestLoggingMiddleware, metrics=metrics, debug=settings.debug)

    # ========================================================================
    # Exception Handlers
    # ========================================================================

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        """Handle errors raised by the service layer."""
        if isinstance(exc, InternalError):
            logger.error("internal_error", path=request.url.path, error=exc.message)
        else:
            logger.info(
                "request_rejected",
                path=request.url.path,
                status_code=exc.status_code,
                reason=exc.message
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, exc.message, exc.description)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Report malformed JSON and bad path parameters as 400."""
        message = format_request_error(exc)
        logger.info("validation_error", path=request.url.path, reason=message)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(status.HTTP_400_BAD_REQUEST, message)
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions (unknown routes, wrong methods)."""
        logger.warning(
            "http_exception",
            path=request.url.path,
            status_code=exc.status_code,
            detail=exc.detail
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, str(exc.detail)),
            headers=getattr(exc, "headers", None)
        )

    # ========================================================================
    # Health and Readiness Endpoints
    # ========================================================================

    @app.get("/health", tags=["Health"], response_class=JSONResponse)
    async def health_check() -> Dict[str, Any]:
        """
        Health check endpoint.

        Returns basic health status without checking dependencies.
        Use for container health checks.
        """
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment
        }

    @app.get("/ready", tags=["Health"], response_class=JSONResponse)
    async def readiness_check() -> JSONResponse:
        """
        Readiness check endpoint.

        Pings MongoDB; answers 503 when it is unreachable.
        """
        checks = {"mongodb": "unknown"}

        try:
            await get_mongo_client().admin.command("ping")
            checks["mongodb"] = "healthy"
        except Exception as e:
            logger.error("mongodb_health_check_failed", error=str(e))
            checks["mongodb"] = "unhealthy"

        all_healthy = all(state == "healthy" for state in checks.values())

        return JSONResponse(
            status_code=status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "ready" if all_healthy else "not_ready",
                "service": settings.app_name,
                "version": settings.app_version,
                "checks": checks
            }
        )

    # ========================================================================
    # Metrics Endpoint
    # ========================================================================

    if metrics is not None:
        metrics_handler = get_metrics_handler(registry)

        @app.get("/metrics", tags=["Monitoring"], response_class=PlainTextResponse)
        async def metrics_endpoint() -> Response:
            """Prometheus metrics endpoint."""
            return Response(content=metrics_handler(), media_type=CONTENT_TYPE_LATEST)

    # ========================================================================
    # API Router Registration
    # ========================================================================

    app.include_router(users_router, prefix=settings.api_prefix)

    return app


app = create_app()


if __name__ == "__main__":
    """
    Run the application with Uvicorn for development.
    """
    settings = get_settings()

    logger.info(
        "starting_uvicorn_server",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

    uvicorn.run(
        "api.src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
