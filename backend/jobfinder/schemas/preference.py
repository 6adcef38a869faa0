from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Annotated, Optional

from jobfinder.models.enums import CompanySize, ContractType, ExperienceLevel

Keyword = Annotated[str, Field(max_length=50)]


class LocationPreference(BaseModel):
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    remote: bool = False

    def has_criteria(self) -> bool:
        return bool(self.city or self.state or self.country or self.remote)


class MoneyRange(BaseModel):
    min: Optional[int] = Field(None, ge=0)
    max: Optional[int] = Field(None, ge=0)
    currency: str = Field("USD", min_length=3, max_length=3)

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class PreferenceInput(BaseModel):
    """Accepts camelCase or snake_case field names."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class PreferenceCriteria(PreferenceInput):
    """The parts of a profile that job matching looks at."""

    id: Optional[str] = None
    job_title: Optional[str] = Field(None, max_length=200)
    keywords: list[str] = []
    location: LocationPreference = LocationPreference()
    contract_types: list[ContractType] = []
    salary_range: Optional[MoneyRange] = None
    day_rate_range: Optional[MoneyRange] = None

    class Config:
        from_attributes = True


class JobPreferenceCreate(PreferenceInput):
    profile_name: str = Field(min_length=1, max_length=100)
    job_title: Optional[str] = Field(None, max_length=200)
    keywords: list[Keyword] = Field(default_factory=list, max_length=20)
    location: LocationPreference = LocationPreference()
    contract_types: list[ContractType] = Field(min_length=1)
    salary_range: Optional[MoneyRange] = None
    day_rate_range: Optional[MoneyRange] = None
    experience_levels: list[ExperienceLevel] = Field(min_length=1)
    company_sizes: list[CompanySize] = Field(min_length=1)
    is_active: bool = True


class JobPreferenceUpdate(PreferenceInput):
    profile_name: Optional[str] = Field(None, min_length=1, max_length=100)
    job_title: Optional[str] = Field(None, max_length=200)
    keywords: Optional[list[Keyword]] = Field(None, max_length=20)
    location: Optional[LocationPreference] = None
    contract_types: Optional[list[ContractType]] = Field(None, min_length=1)
    salary_range: Optional[MoneyRange] = None
    day_rate_range: Optional[MoneyRange] = None
    experience_levels: Optional[list[ExperienceLevel]] = Field(None, min_length=1)
    company_sizes: Optional[list[CompanySize]] = Field(None, min_length=1)
    is_active: Optional[bool] = None


class JobPreferenceResponse(BaseModel):
    id: str
    user_id: str
    profile_name: str
    job_title: Optional[str] = None
    keywords: list[str] = []
    location: LocationPreference = LocationPreference()
    contract_types: list[ContractType] = []
    salary_range: Optional[MoneyRange] = None
    day_rate_range: Optional[MoneyRange] = None
    experience_levels: list[ExperienceLevel]
    company_sizes: list[CompanySize]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DuplicatePreferenceRequest(BaseModel):
    profile_name: str = Field(min_length=1, max_length=100)


class PreferenceStats(BaseModel):
    total_profiles: int
    active_profiles: int
