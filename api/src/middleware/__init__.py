"""FastAPI middleware components.

This package contains custom middleware for request ids, response headers,
masked request/response logging and request metrics.
"""

from api.src.middleware.headers import HeaderMiddleware, generate_request_id
from api.src.middleware.request_logging import RequestLoggingMiddleware

__all__ = [
    "HeaderMiddleware",
    "RequestLoggingMiddleware",
    "generate_request_id",
]
