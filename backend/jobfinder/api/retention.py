from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from jobfinder.auth import get_current_user
from jobfinder.database import get_db
from jobfinder.models import User
from jobfinder.schemas import (
    RetentionConfigSchema,
    RetentionConfigUpdate,
    RetentionExecuteRequest,
    RetentionResultResponse,
    RetentionStatistics,
)
from jobfinder.services.retention import (
    DataRetentionService,
    get_retention_config,
    update_retention_config,
)

router = APIRouter()


@router.post("/execute", response_model=RetentionResultResponse)
async def execute_retention(
    request: RetentionExecuteRequest,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await DataRetentionService(db).manual_cleanup(dry_run=request.dry_run)
    return RetentionResultResponse(**result.to_dict())


@router.get("/statistics", response_model=RetentionStatistics)
async def retention_statistics(
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return RetentionStatistics(**await DataRetentionService(db).statistics())


@router.get("/config", response_model=RetentionConfigSchema)
async def get_config(_: User = Depends(get_current_user)):
    return RetentionConfigSchema(**get_retention_config().to_dict())


@router.put("/config", response_model=RetentionConfigSchema)
async def update_config(
    update: RetentionConfigUpdate,
    _: User = Depends(get_current_user),
):
    config = update_retention_config(**update.model_dump(exclude_unset=True))
    return RetentionConfigSchema(**config.to_dict())


@router.get("/health")
async def retention_health(
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    health = await DataRetentionService(db).health()
    last_run_at = health["last_run_at"]
    health["last_run_at"] = last_run_at.isoformat() if last_run_at else None
    return JSONResponse(status_code=200 if health["status"] == "healthy" else 503, content=health)
