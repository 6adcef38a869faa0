from pydantic import BaseModel, Field
from typing import Optional

from jobfinder.schemas.job import JobData, JobMatchResponse


class DuplicateDetectionOptions(BaseModel):
    check_exact_duplicates: bool = True
    check_similar_jobs: bool = True
    similarity_threshold: float = Field(0.85, ge=0.0, le=1.0)
    check_across_websites: bool = False


class DuplicateCheckResponse(BaseModel):
    is_duplicate: bool
    existing_job: Optional[JobMatchResponse] = None
    similar_jobs: list[JobMatchResponse] = []
    confidence: float


class DetectDuplicatesRequest(BaseModel):
    job_data: JobData
    options: DuplicateDetectionOptions = DuplicateDetectionOptions()


class BatchDetectRequest(BaseModel):
    jobs: list[JobData] = Field(min_length=1, max_length=100)
    options: DuplicateDetectionOptions = DuplicateDetectionOptions()


class BatchDetectSummary(BaseModel):
    total_jobs: int
    duplicates_found: int
    unique_jobs: int


class BatchDetectResponse(BaseModel):
    results: dict[str, DuplicateCheckResponse]
    summary: BatchDetectSummary


class WebsiteDuplicateCount(BaseModel):
    source_website: str
    count: int


class DuplicateStatistics(BaseModel):
    total_duplicates: int
    duplicates_by_website: list[WebsiteDuplicateCount]
    recent_duplicates: list[JobMatchResponse]


class ConsolidationResponse(BaseModel):
    removed_count: int
    message: str


class CleanupResponse(BaseModel):
    removed_count: int
    days_old: int
