from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional

PHONE_PATTERN = r"^\+?[1-9]\d{1,14}$"
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class NotificationSettingsResponse(BaseModel):
    email_enabled: bool
    email_address: Optional[str] = None
    email_consolidate_daily: bool
    sms_enabled: bool
    sms_phone_number: Optional[str] = None
    push_enabled: bool
    quiet_hours_enabled: bool
    quiet_hours_start: Optional[str] = None
    quiet_hours_end: Optional[str] = None

    class Config:
        from_attributes = True


class NotificationSettingsUpdate(BaseModel):
    email_enabled: Optional[bool] = None
    email_address: Optional[EmailStr] = None
    email_consolidate_daily: Optional[bool] = None
    sms_enabled: Optional[bool] = None
    sms_phone_number: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    push_enabled: Optional[bool] = None
    quiet_hours_enabled: Optional[bool] = None
    quiet_hours_start: Optional[str] = Field(None, pattern=TIME_PATTERN)
    quiet_hours_end: Optional[str] = Field(None, pattern=TIME_PATTERN)


class NotificationTestRequest(BaseModel):
    type: Literal["email", "sms"]
    recipient: Optional[str] = None


class NotificationResultResponse(BaseModel):
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
