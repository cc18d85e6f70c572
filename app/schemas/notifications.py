"""Notification relay schemas."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field, field_validator

from app.schemas.base import CamelModel, StrippedStr


class NotificationChannel(str, Enum):
    """Delivery channel enumeration."""

    EMAIL = "EMAIL"
    SMS = "SMS"
    PUSH = "PUSH"


class NotificationStatus(str, Enum):
    """Notification status enumeration."""

    QUEUED = "QUEUED"
    SENT = "SENT"
    FAILED = "FAILED"


class NotificationCreate(CamelModel):
    """Schema for an inbound notification envelope."""

    type: StrippedStr = Field(..., min_length=1, max_length=64)
    channel: NotificationChannel = NotificationChannel.EMAIL
    recipient: StrippedStr | None = Field(None, min_length=1, max_length=256)
    payload: dict[str, Any]
    source: StrippedStr = Field(..., min_length=1, max_length=64)
    overwrite_status: NotificationStatus | None = None

    @field_validator("channel", "overwrite_status", mode="before")
    @classmethod
    def uppercase_enum(cls, v: Any) -> Any:
        """Channel and status are accepted in any case."""
        if isinstance(v, str):
            return v.strip().upper()
        return v


class Notification(CamelModel):
    """Stored notification record, also used as the response body."""

    id: str
    type: str
    channel: NotificationChannel
    recipient: str
    payload: dict[str, Any]
    source: str
    status: NotificationStatus
    created_at: datetime
    updated_at: datetime
    last_error: str | None = None


class NotificationAccepted(CamelModel):
    """Schema for the notification acceptance response."""

    id: str
    status: NotificationStatus


class NotificationFilters(CamelModel):
    """Schema for notification filtering."""

    type: StrippedStr | None = None
    recipient: StrippedStr | None = None
    status: StrippedStr | None = None

    @field_validator("status")
    @classmethod
    def uppercase_status(cls, v: str | None) -> str | None:
        """Statuses are matched case-insensitively."""
        return v.upper() if v else None
