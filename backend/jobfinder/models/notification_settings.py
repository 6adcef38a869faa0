from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from jobfinder.database import Base, utcnow
import uuid


class NotificationSettings(Base):
    """
    Per-user alert channel configuration.

    Quiet hours are stored as "HH:MM" strings in UTC; a window whose
    start is after its end wraps past midnight.
    """

    __tablename__ = "notification_settings"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    email_enabled = Column(Boolean, nullable=False, default=True)
    email_address = Column(String(255), nullable=True)
    email_consolidate_daily = Column(Boolean, nullable=False, default=False)
    sms_enabled = Column(Boolean, nullable=False, default=False)
    sms_phone_number = Column(String(20), nullable=True)
    push_enabled = Column(Boolean, nullable=False, default=False)
    quiet_hours_enabled = Column(Boolean, nullable=False, default=False)
    quiet_hours_start = Column(String(5), nullable=True)
    quiet_hours_end = Column(String(5), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
