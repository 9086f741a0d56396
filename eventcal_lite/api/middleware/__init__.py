"""Middleware for eventcal_lite's aiohttp application."""

from .correlation_id import correlation_id_middleware, get_request_id, request_id_var
from .error_handling import error_middleware

__all__ = [
    "correlation_id_middleware",
    "error_middleware",
    "get_request_id",
    "request_id_var",
]
