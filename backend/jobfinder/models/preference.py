"""
Job Preference Model - a saved search profile owned by a user

JSON columns:
    keywords: ["react", "node.js"]
    location: {"city": ..., "state": ..., "country": ..., "remote": bool}
    salary_range / day_rate_range: {"min": int, "max": int, "currency": "USD"}
    contract_types, experience_levels, company_sizes: lists of enum values
"""

from sqlalchemy import Column, String, Boolean, DateTime, JSON, ForeignKey
from jobfinder.database import Base, utcnow
import uuid


class JobPreference(Base):
    """
    Job search profile.

    Only active profiles are handed to the N8N workflow and
    matched against incoming jobs.
    """

    __tablename__ = "job_preferences"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    profile_name = Column(String(100), nullable=False)
    job_title = Column(String(200), nullable=True)
    keywords = Column(JSON, nullable=False, default=list)
    location = Column(JSON, nullable=False, default=dict)
    contract_types = Column(JSON, nullable=False, default=list)
    salary_range = Column(JSON, nullable=True)
    day_rate_range = Column(JSON, nullable=True)
    experience_levels = Column(JSON, nullable=False, default=list)
    company_sizes = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
