from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Any, Literal, Optional

from jobfinder.schemas.job import JobData


class N8NModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class FoundJobsRequest(N8NModel):
    jobs: list[JobData] = Field(min_length=1, max_length=500)
    website_source: str = Field(min_length=1, max_length=100)
    execution_id: Optional[str] = None


class FoundJobsResponse(BaseModel):
    success: bool = True
    processed: int
    duplicates: int
    matched: int
    total: int
    errors: list[str]


class N8NJobMatch(N8NModel):
    preference_id: str = Field(
        pattern=r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
    )
    job: JobData
    match_score: Optional[float] = Field(None, ge=0.0, le=1.0)


class StoreMatchesRequest(N8NModel):
    matches: list[N8NJobMatch] = Field(min_length=1)
    execution_id: Optional[str] = None


class StoreMatchesResponse(BaseModel):
    success: bool = True
    stored: int
    total: int


class WebhookTestRequest(N8NModel):
    test_type: Literal["preferences", "matching", "duplicate"]
    data: Optional[dict[str, Any]] = None


class WebsiteSelectors(BaseModel):
    job_card: str
    title: str
    company: str
    location: str
    salary: Optional[str] = None
    description: Optional[str] = None


class WebsiteConfig(BaseModel):
    name: str
    base_url: str
    search_path: str
    enabled: bool = True
    rate_limit_ms: int
    selectors: WebsiteSelectors
