"""
Prometheus Metrics Middleware

Request metrics:
- HTTP request latency by route pattern
- Request count by endpoint and status
- Active request gauge

Domain metrics:
- Duplicates detected, by detection stage (url, hash, fuzzy_hash, similarity)
- Match scoring latency
- Webhook jobs processed, by outcome (matched, unmatched, duplicate, error)
- Alerts sent, by channel and status
- Requests rejected by rate limiters

Metrics Endpoint:
    GET /metrics - Prometheus-format metrics
"""

import time
import logging
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    CONTENT_TYPE_LATEST,
    generate_latest,
    REGISTRY,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

logger = logging.getLogger(__name__)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint", "status"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

ACTIVE_REQUESTS = Gauge(
    "http_requests_active",
    "Number of active HTTP requests",
    ["method", "endpoint"]
)

DUPLICATES_DETECTED = Counter(
    "job_duplicates_detected_total",
    "Jobs flagged as duplicates",
    ["method"]
)

MATCH_SCORE_LATENCY = Histogram(
    "match_score_calculation_seconds",
    "Time to match one job against all active preferences",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25]
)

WEBHOOK_JOBS = Counter(
    "webhook_jobs_processed_total",
    "Jobs received through the N8N found-jobs webhook",
    ["outcome"]
)

ALERTS_SENT = Counter(
    "job_alerts_sent_total",
    "Job alert notifications attempted",
    ["channel", "status"]
)

RATE_LIMITED = Counter(
    "rate_limited_requests_total",
    "Requests rejected by a rate limiter",
    ["limiter"]
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Records latency, count and in-flight requests per route."""

    def __init__(self, app: FastAPI, app_name: str = "jobfinder"):
        super().__init__(app)
        self.app_name = app_name

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        endpoint = self._get_endpoint(request)
        method = request.method

        if endpoint == "/metrics":
            return await call_next(request)

        ACTIVE_REQUESTS.labels(method=method, endpoint=endpoint).inc()
        start_time = time.perf_counter()
        status = "500"

        try:
            response = await call_next(request)
            status = str(response.status_code)
        except Exception as e:
            logger.error(f"Request error on {method} {endpoint}: {e}")
            raise
        finally:
            duration = time.perf_counter() - start_time
            REQUEST_LATENCY.labels(method=method, endpoint=endpoint, status=status).observe(duration)
            REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
            ACTIVE_REQUESTS.labels(method=method, endpoint=endpoint).dec()

        return response

    def _get_endpoint(self, request: Request) -> str:
        """
        Route pattern (e.g. /api/jobs/{match_id}) rather than the raw path,
        keeping label cardinality bounded.
        """
        for route in request.app.routes:
            match, _ = route.matches(request.scope)
            if match == Match.FULL:
                return getattr(route, "path", request.url.path)
        return request.url.path


def metrics_endpoint(request: Request) -> Response:
    return PlainTextResponse(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST
    )


def setup_metrics(app: FastAPI) -> None:
    app.add_middleware(PrometheusMiddleware, app_name="jobfinder")
    app.add_route("/metrics", metrics_endpoint, methods=["GET"])
    logger.info("Prometheus metrics configured")


def record_duplicate(method: str) -> None:
    DUPLICATES_DETECTED.labels(method=method).inc()


def record_match_score_latency(duration: float) -> None:
    MATCH_SCORE_LATENCY.observe(duration)


def record_webhook_job(outcome: str, count: int = 1) -> None:
    if count:
        WEBHOOK_JOBS.labels(outcome=outcome).inc(count)


def record_alert(channel: str, success: bool) -> None:
    ALERTS_SENT.labels(channel=channel, status="success" if success else "failed").inc()


def record_rate_limited(limiter: str) -> None:
    RATE_LIMITED.labels(limiter=limiter).inc()
