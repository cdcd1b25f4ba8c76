"""FastAPI middleware components.

This package contains custom middleware for request/response processing:
correlation IDs, request logging and metrics.
"""

from api.src.middleware.request_logging import (
    CORRELATION_ID_HEADER,
    RequestLoggingMiddleware,
)

__all__ = [
    "CORRELATION_ID_HEADER",
    "RequestLoggingMiddleware",
]
