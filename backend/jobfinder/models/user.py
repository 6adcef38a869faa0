"""
User Model - account credentials and display name

Deleting a user cascades (ON DELETE CASCADE) to job preferences,
their job matches, and notification settings.
"""

from sqlalchemy import Column, String, DateTime
from jobfinder.database import Base, utcnow
import uuid


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
