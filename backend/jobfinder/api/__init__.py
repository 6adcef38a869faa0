from fastapi import APIRouter, Depends
from jobfinder.api import auth, duplicates, jobs, n8n, notifications, preferences, retention
from jobfinder.services.rate_limit import api_limiter

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(preferences.router, prefix="/preferences", tags=["preferences"])
api_router.include_router(jobs.router, prefix="/jobs", tags=["jobs"], dependencies=[Depends(api_limiter)])
api_router.include_router(duplicates.router, prefix="/duplicates", tags=["duplicates"], dependencies=[Depends(api_limiter)])
api_router.include_router(n8n.router, prefix="/n8n", tags=["n8n"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"], dependencies=[Depends(api_limiter)])
api_router.include_router(retention.router, prefix="/data-retention", tags=["data-retention"], dependencies=[Depends(api_limiter)])
