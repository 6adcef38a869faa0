from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse

from jobfinder.models.enums import ApplicationStatus


class JobData(BaseModel):
    """
    A scraped job posting as the N8N workflow (or a client) submits it.

    Accepts camelCase keys (sourceWebsite, contractType, postedAt) as
    well as snake_case.
    """

    title: str = Field(min_length=1, max_length=500)
    company: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=500)
    salary: Optional[str] = Field(None, max_length=200)
    contract_type: Optional[str] = Field(None, max_length=50)
    url: str = Field(max_length=2000)
    source_website: str = Field("unknown", max_length=100)
    description: Optional[str] = None
    requirements: Optional[str] = None
    posted_at: Optional[datetime] = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("must be a valid http(s) URL")
        return v

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class JobMatchResponse(BaseModel):
    id: str
    preference_id: str
    profile_name: Optional[str] = None
    job_title: str
    company: Optional[str] = None
    location: Optional[str] = None
    salary: Optional[str] = None
    contract_type: Optional[str] = None
    job_url: str
    source_website: str
    job_description: Optional[str] = None
    requirements: Optional[str] = None
    match_score: Optional[int] = None
    posted_at: Optional[datetime] = None
    found_at: datetime
    application_status: ApplicationStatus
    alert_sent: bool
    job_hash: str
    archived_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class JobMatchListResponse(BaseModel):
    matches: list[JobMatchResponse]
    total: int
    page: int
    limit: int


class ApplicationStatusUpdate(BaseModel):
    application_status: ApplicationStatus


class JobStatistics(BaseModel):
    total_matches: int
    applied_jobs: int
    interviewed_jobs: int
    rejected_jobs: int
    offered_jobs: int
    active_profiles: int
    last_execution_at: Optional[datetime] = None


class SourceWebsiteCount(BaseModel):
    source_website: str
    count: int


class DashboardResponse(BaseModel):
    statistics: JobStatistics
    recent_matches: list[JobMatchResponse]
    matches_by_source: list[SourceWebsiteCount]


class ScoredMatch(BaseModel):
    preference_id: Optional[str] = None
    job: JobData
    match_score: int


class BatchProcessResponse(BaseModel):
    processed: int
    duplicates: int
    matches: list[JobMatchResponse]
    errors: list[str]
