"""Middleware package for the service."""

from chromagent.app.middleware.maintenance import MaintenanceMiddleware
from chromagent.app.middleware.rate_limit import FixedWindowRateLimiter, RateLimitMiddleware
from chromagent.app.middleware.request_id import RequestIdMiddleware, get_request_id

__all__ = [
    "FixedWindowRateLimiter",
    "MaintenanceMiddleware",
    "RateLimitMiddleware",
    "RequestIdMiddleware",
    "get_request_id",
]
