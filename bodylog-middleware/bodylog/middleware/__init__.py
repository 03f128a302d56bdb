"""bodylog middleware — request/response lines and body dumps."""

from .body_logging import BodyLoggingMiddleware
from .request_logging import RequestLoggingMiddleware

__all__ = [
    "BodyLoggingMiddleware",
    "RequestLoggingMiddleware",
]
