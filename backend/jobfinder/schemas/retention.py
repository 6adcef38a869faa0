from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class RetentionConfigSchema(BaseModel):
    job_match_retention_days: int = Field(ge=1, le=365)
    archive_before_delete_days: int = Field(ge=0, le=90)
    batch_size: int = Field(ge=100, le=10000)
    enable_archiving: bool


class RetentionConfigUpdate(BaseModel):
    job_match_retention_days: Optional[int] = Field(None, ge=1, le=365)
    archive_before_delete_days: Optional[int] = Field(None, ge=0, le=90)
    batch_size: Optional[int] = Field(None, ge=100, le=10000)
    enable_archiving: Optional[bool] = None


class RetentionExecuteRequest(BaseModel):
    dry_run: bool = False


class RetentionResultResponse(BaseModel):
    job_matches_deleted: int
    job_matches_archived: int
    orphans_deleted: int
    errors: list[str]
    execution_time_ms: int
    dry_run: bool = False


class RetentionStatistics(BaseModel):
    total_job_matches: int
    job_matches_near_expiry: int
    archived_job_matches: int
    oldest_job_match: Optional[datetime] = None
    newest_job_match: Optional[datetime] = None
