"""
Request logging and metrics middleware.

Binds a correlation ID to the structlog context for the lifetime of each
request, logs request start/completion, and feeds the Prometheus HTTP
metrics. Unhandled exceptions are answered here with the 500 envelope so
that they are logged, counted and carry the correlation ID like any other
response.
"""

import time
import uuid
import structlog
from typing import Optional, Set
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from api.src.errors import InternalError
from api.src.models.envelope import error_body
from shared.logging import bind_context, clear_context
from shared.metrics import ApiMetrics

logger = structlog.get_logger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Endpoint label for requests that matched no route
UNMATCHED_ROUTE = "unmatched"


def route_template(request: Request) -> str:
    """Matched route path (``/api/users/{user_id}``) or ``UNMATCHED_ROUTE``."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ROUTE


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request logging, correlation IDs, and metrics."""

    # Paths that are not logged at info level
    QUIET_PATHS: Set[str] = {
        "/health",
        "/ready",
        "/metrics",
    }

    # Routes with this tag are counted in user_operations_total
    OPERATION_TAG = "Users"

    def __init__(self, app, metrics: Optional[ApiMetrics] = None, debug: bool = False):
        """
        Initialize middleware.

        Args:
            app: ASGI application
            metrics: Metrics to update; None disables metrics
            debug: Expose exception text in 500 responses
        """
        super().__init__(app)
        self.metrics = metrics
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        """Process request and log details."""
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or str(uuid.uuid4())
        method = request.method
        path = request.url.path
        quiet = path in self.QUIET_PATHS

        clear_context()
        bind_context(correlation_id=correlation_id)

        if not quiet:
            logger.info(
                "request_started",
                method=method,
                path=path,
                client_ip=request.client.host if request.client else "unknown",
            )

        in_progress = None
        if self.metrics is not None:
            in_progress = self.metrics.http_requests_in_progress.labels(method=method)
            in_progress.inc()

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method=method,
                path=path,
                error=str(e),
                duration=f"{time.perf_counter() - start_time:.3f}s",
                exc_info=True
            )
            response = JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=error_body(
                    status.HTTP_500_INTERNAL_SERVER_ERROR,
                    InternalError.default_message,
                    str(e) if self.debug else None
                )
            )
        finally:
            clear_context()
            if in_progress is not None:
                in_progress.dec()

        duration = time.perf_counter() - start_time
        endpoint = route_template(request)

        if self.metrics is not None:
            self.metrics.http_requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=response.status_code
            ).inc()
            self.metrics.http_request_duration_seconds.labels(
                method=method,
                endpoint=endpoint
            ).observe(duration)

            route = request.scope.get("route")
            if route is not None and self.OPERATION_TAG in (getattr(route, "tags", None) or []):
                self.metrics.record_operation(route.name, response.status_code)

        if not quiet:
            logger.info(
                "request_completed",
                method=method,
                path=path,
                status_code=response.status_code,
                duration=f"{duration:.3f}s",
                correlation_id=correlation_id
            )

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
