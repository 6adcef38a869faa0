"""
Job Finder API - Main Application Entry Point

This module initializes the FastAPI application with:
- Database connection and schema initialization
- Background scheduler for data retention and alert dispatch
- CORS and security header middleware
- Prometheus metrics
- API router registration

Architecture:
    FastAPI App
    ├── Lifespan Management (startup/shutdown)
    ├── CORS Middleware (CORS_ORIGINS)
    ├── Security Headers Middleware
    ├── Prometheus Middleware (/metrics)
    └── API Router (/api)
        ├── /auth - Registration, login and account management
        ├── /preferences - Job preference profiles
        ├── /jobs - Stored job matches and dashboard
        ├── /duplicates - Duplicate detection and consolidation
        ├── /n8n - Webhooks for the N8N scraping workflow
        ├── /notifications - Alert settings and test sends
        └── /data-retention - Archiving and purging old matches
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jobfinder.api import api_router
from jobfinder.config import get_settings
from jobfinder.database import init_db
from jobfinder.errors import register_exception_handlers
from jobfinder.middleware import SecurityHeadersMiddleware, setup_metrics
from jobfinder.scheduler import start_scheduler, stop_scheduler
from jobfinder.services.rate_limit import close_limiters

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle events.

    Startup:
        1. Initialize database tables
        2. Start the background scheduler

    Shutdown:
        1. Stop the scheduler
        2. Close rate limiter Redis connections
    """
    await init_db()
    start_scheduler()
    logger.info("Job Finder API started")
    yield
    stop_scheduler()
    await close_limiters()


app = FastAPI(
    title="Job Finder API",
    description="Job preference matching, duplicate detection and alerting API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)

setup_metrics(app)
register_exception_handlers(app)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
