from sqlalchemy import Column, String, Integer, Text, DateTime, JSON
from jobfinder.database import Base, utcnow
from jobfinder.models.enums import ExecutionStatus
import uuid


class WorkflowExecution(Base):
    """One N8N scraping run, as reported through the found-jobs webhook."""

    __tablename__ = "workflow_executions"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    execution_id = Column(String(255), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=ExecutionStatus.RUNNING.value)
    website_source = Column(String(100), nullable=True)
    jobs_found = Column(Integer, nullable=False, default=0)
    jobs_matched = Column(Integer, nullable=False, default=0)
    duplicates_skipped = Column(Integer, nullable=False, default=0)
    alerts_sent = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    details = Column(JSON, nullable=True)
    started_at = Column(DateTime, nullable=False, default=utcnow)
    completed_at = Column(DateTime, nullable=True)
