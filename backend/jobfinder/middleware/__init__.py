"""
Middleware Package

Contains FastAPI middleware for:
- Prometheus metrics collection
- Security response headers
"""

from jobfinder.middleware.metrics import (
    PrometheusMiddleware,
    setup_metrics,
    REQUEST_LATENCY,
    REQUEST_COUNT,
    ACTIVE_REQUESTS,
)
from jobfinder.middleware.security import SecurityHeadersMiddleware

__all__ = [
    "PrometheusMiddleware",
    "setup_metrics",
    "REQUEST_LATENCY",
    "REQUEST_COUNT",
    "ACTIVE_REQUESTS",
    "SecurityHeadersMiddleware",
]
