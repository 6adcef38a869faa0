"""
N8N Webhook Endpoints

The N8N workflow pulls active preference profiles, scrapes the configured
job boards, and posts what it found back here:

    GET  /n8n/preferences    active profiles across all users
    POST /n8n/jobs/found     raw scraped jobs (deduplicated, matched, stored)
    POST /n8n/jobs/matches   matches the workflow already scored
    GET  /n8n/websites       job boards and their selectors
    POST /n8n/webhook/test   smoke test for one pipeline stage
    GET  /n8n/health         database status for workflow monitoring

When N8N_API_KEY is set every call must send it in X-N8N-API-Key.
"""

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from jobfinder.config import get_settings
from jobfinder.database import get_db, utcnow
from jobfinder.errors import AppError, bad_request
from jobfinder.models import WorkflowExecution
from jobfinder.models.enums import ExecutionStatus
from jobfinder.schemas import (
    FoundJobsRequest,
    FoundJobsResponse,
    JobData,
    JobPreferenceResponse,
    PreferenceCriteria,
    StoreMatchesRequest,
    StoreMatchesResponse,
    WebhookTestRequest,
)
from jobfinder.services.duplicates import DuplicateDetectionService
from jobfinder.services.job_matches import JobMatchService
from jobfinder.services.preferences import JobPreferencesService, to_criteria
from jobfinder.services.rate_limit import webhook_limiter
from jobfinder.services.websites import enabled_websites
from jobfinder.tasks.alerts import enqueue_job_alerts

logger = logging.getLogger(__name__)


async def verify_n8n_api_key(x_n8n_api_key: Optional[str] = Header(None)) -> None:
    expected = get_settings().n8n_api_key
    if not expected:
        return
    if not x_n8n_api_key or not hmac.compare_digest(x_n8n_api_key, expected):
        raise AppError("Invalid or missing N8N API key", 401, "INVALID_API_KEY")


router = APIRouter(dependencies=[Depends(verify_n8n_api_key), Depends(webhook_limiter)])


@router.get("/preferences")
async def active_preferences(db: AsyncSession = Depends(get_db)):
    preferences = await JobPreferencesService(db).get_all_active()
    data = [JobPreferenceResponse.model_validate(p).model_dump(mode="json") for p in preferences]
    return {"success": True, "data": data, "count": len(data)}


@router.post("/jobs/found", response_model=FoundJobsResponse)
async def jobs_found(request: FoundJobsRequest, db: AsyncSession = Depends(get_db)):
    execution = WorkflowExecution(
        execution_id=request.execution_id or f"manual-{utcnow():%Y%m%d%H%M%S}",
        website_source=request.website_source,
        jobs_found=len(request.jobs),
    )
    db.add(execution)
    await db.commit()

    jobs = [job.model_copy(update={"source_website": request.website_source}) for job in request.jobs]

    try:
        preferences = [to_criteria(p) for p in await JobPreferencesService(db).get_all_active()]
        results = await JobMatchService(db).process_batch_jobs(jobs, preferences)
    except Exception as e:
        await db.rollback()
        execution.status = ExecutionStatus.FAILED.value
        execution.error_message = str(e)
        execution.completed_at = utcnow()
        await db.commit()
        logger.error(f"N8N found-jobs processing failed for {request.website_source}: {e}")
        raise

    match_ids = [match.id for match in results["matches"]]
    execution.status = ExecutionStatus.SUCCESS.value
    execution.jobs_matched = len(match_ids)
    execution.duplicates_skipped = results["duplicates"]
    execution.details = {"errors": results["errors"]} if results["errors"] else None
    execution.completed_at = utcnow()
    await db.commit()

    enqueue_job_alerts(match_ids)

    logger.info(
        f"N8N {request.website_source}: {len(jobs)} jobs, {results['processed']} processed, "
        f"{results['duplicates']} duplicates, {len(match_ids)} matched"
    )
    return FoundJobsResponse(
        processed=results["processed"],
        duplicates=results["duplicates"],
        matched=len(match_ids),
        total=len(jobs),
        errors=results["errors"],
    )


@router.post("/jobs/matches", response_model=StoreMatchesResponse)
async def store_matches(request: StoreMatchesRequest, db: AsyncSession = Depends(get_db)):
    stored = await JobMatchService(db).store_job_matches(request.matches)
    enqueue_job_alerts([match.id for match in stored])
    return StoreMatchesResponse(stored=len(stored), total=len(request.matches))


@router.get("/websites")
async def websites():
    data = [site.model_dump() for site in enabled_websites()]
    return {"success": True, "data": data}


def _parse_test_data(model, value):
    try:
        return model.model_validate(value)
    except ValidationError as e:
        raise bad_request(f"Invalid test data: {e.error_count()} validation errors", "INVALID_TEST_DATA")


@router.post("/webhook/test")
async def webhook_test(request: WebhookTestRequest, db: AsyncSession = Depends(get_db)):
    logger.info(f"N8N test webhook triggered: {request.test_type}")
    data = request.data or {}

    if request.test_type == "preferences":
        preferences = await JobPreferencesService(db).get_all_active()
        result = f"Found {len(preferences)} active preferences"

    elif request.test_type == "matching":
        if not data.get("job") or not data.get("preferences"):
            raise bad_request("Missing job or preferences data for matching test", "MISSING_TEST_DATA")
        job = _parse_test_data(JobData, data["job"])
        preferences = [_parse_test_data(PreferenceCriteria, p) for p in data["preferences"]]
        matches = JobMatchService(db).find_matches(job, preferences)
        result = f"Found {len(matches)} matches"

    else:
        if not data.get("job"):
            raise bad_request("Missing job data for duplicate test", "MISSING_TEST_DATA")
        job = _parse_test_data(JobData, data["job"])
        check = await DuplicateDetectionService(db).detect_duplicates(job)
        result = f"Job is {'a duplicate' if check.is_duplicate else 'unique'}"

    return {"success": True, "test_type": request.test_type, "result": result}


@router.get("/health")
async def health(db: AsyncSession = Depends(get_db)):
    database_ok = await JobPreferencesService(db).health_check()
    body = {
        "status": "healthy" if database_ok else "unhealthy",
        "timestamp": utcnow().isoformat(),
        "services": {"database": "healthy" if database_ok else "unhealthy"},
    }
    return JSONResponse(status_code=200 if database_ok else 503, content=body)
