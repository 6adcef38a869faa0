from jobfinder.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    DeleteAccountRequest,
    LoginRequest,
    MessageResponse,
    ProfileUpdate,
    RegisterRequest,
    TokenResponse,
    TokenVerifyResponse,
    UserResponse,
)
from jobfinder.schemas.preference import (
    DuplicatePreferenceRequest,
    JobPreferenceCreate,
    JobPreferenceResponse,
    JobPreferenceUpdate,
    LocationPreference,
    MoneyRange,
    PreferenceCriteria,
    PreferenceStats,
)
from jobfinder.schemas.job import (
    ApplicationStatusUpdate,
    BatchProcessResponse,
    DashboardResponse,
    JobData,
    JobMatchListResponse,
    JobMatchResponse,
    JobStatistics,
    ScoredMatch,
    SourceWebsiteCount,
)
from jobfinder.schemas.duplicate import (
    BatchDetectRequest,
    BatchDetectResponse,
    BatchDetectSummary,
    CleanupResponse,
    ConsolidationResponse,
    DetectDuplicatesRequest,
    DuplicateCheckResponse,
    DuplicateDetectionOptions,
    DuplicateStatistics,
    WebsiteDuplicateCount,
)
from jobfinder.schemas.n8n import (
    FoundJobsRequest,
    FoundJobsResponse,
    N8NJobMatch,
    StoreMatchesRequest,
    StoreMatchesResponse,
    WebhookTestRequest,
    WebsiteConfig,
    WebsiteSelectors,
)
from jobfinder.schemas.notification import (
    NotificationResultResponse,
    NotificationSettingsResponse,
    NotificationSettingsUpdate,
    NotificationTestRequest,
)
from jobfinder.schemas.retention import (
    RetentionConfigSchema,
    RetentionConfigUpdate,
    RetentionExecuteRequest,
    RetentionResultResponse,
    RetentionStatistics,
)

__all__ = [
    "AuthResponse",
    "ChangePasswordRequest",
    "DeleteAccountRequest",
    "LoginRequest",
    "MessageResponse",
    "ProfileUpdate",
    "RegisterRequest",
    "TokenResponse",
    "TokenVerifyResponse",
    "UserResponse",
    "DuplicatePreferenceRequest",
    "JobPreferenceCreate",
    "JobPreferenceResponse",
    "JobPreferenceUpdate",
    "LocationPreference",
    "MoneyRange",
    "PreferenceCriteria",
    "PreferenceStats",
    "ApplicationStatusUpdate",
    "BatchProcessResponse",
    "DashboardResponse",
    "JobData",
    "JobMatchListResponse",
    "JobMatchResponse",
    "JobStatistics",
    "ScoredMatch",
    "SourceWebsiteCount",
    "BatchDetectRequest",
    "BatchDetectResponse",
    "BatchDetectSummary",
    "CleanupResponse",
    "ConsolidationResponse",
    "DetectDuplicatesRequest",
    "DuplicateCheckResponse",
    "DuplicateDetectionOptions",
    "DuplicateStatistics",
    "WebsiteDuplicateCount",
    "FoundJobsRequest",
    "FoundJobsResponse",
    "N8NJobMatch",
    "StoreMatchesRequest",
    "StoreMatchesResponse",
    "WebhookTestRequest",
    "WebsiteConfig",
    "WebsiteSelectors",
    "NotificationResultResponse",
    "NotificationSettingsResponse",
    "NotificationSettingsUpdate",
    "NotificationTestRequest",
    "RetentionConfigSchema",
    "RetentionConfigUpdate",
    "RetentionExecuteRequest",
    "RetentionResultResponse",
    "RetentionStatistics",
]
