"""
Job Match Model - a scraped job attached to the preference it matched

Status Flow:
    not_applied → applied → interviewed → offered/rejected

Duplicate Keys:
    job_hash: SHA-256 over normalized url|title|company, unique per preference
    job_url: exact-URL duplicate lookups (indexed)
"""

from sqlalchemy import (
    Column, String, Integer, Text, Boolean, DateTime, ForeignKey, UniqueConstraint,
)
from jobfinder.database import Base, utcnow
from jobfinder.models.enums import ApplicationStatus
import uuid


class JobMatch(Base):
    __tablename__ = "job_matches"
    __table_args__ = (
        UniqueConstraint("preference_id", "job_hash", name="uq_job_matches_preference_hash"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    preference_id = Column(
        String, ForeignKey("job_preferences.id", ondelete="CASCADE"), nullable=False, index=True
    )
    job_title = Column(String(500), nullable=False)
    company = Column(String(500), nullable=True)
    location = Column(String(500), nullable=True)
    salary = Column(String(200), nullable=True)
    contract_type = Column(String(50), nullable=True)
    job_url = Column(String(2000), nullable=False, index=True)
    source_website = Column(String(100), nullable=False, index=True)
    job_description = Column(Text, nullable=True)
    requirements = Column(Text, nullable=True)
    match_score = Column(Integer, nullable=True)
    posted_at = Column(DateTime, nullable=True)
    found_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    application_status = Column(
        String(20), nullable=False, default=ApplicationStatus.NOT_APPLIED.value, index=True
    )
    alert_sent = Column(Boolean, nullable=False, default=False)
    job_hash = Column(String(64), nullable=False, index=True)
    archived_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
