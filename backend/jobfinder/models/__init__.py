from jobfinder.models.enums import (
    ApplicationStatus,
    CompanySize,
    ContractType,
    ExecutionStatus,
    ExperienceLevel,
)
from jobfinder.models.user import User
from jobfinder.models.preference import JobPreference
from jobfinder.models.job_match import JobMatch
from jobfinder.models.notification_settings import NotificationSettings
from jobfinder.models.workflow_execution import WorkflowExecution

__all__ = [
    "ApplicationStatus",
    "CompanySize",
    "ContractType",
    "ExecutionStatus",
    "ExperienceLevel",
    "User",
    "JobPreference",
    "JobMatch",
    "NotificationSettings",
    "WorkflowExecution",
]
