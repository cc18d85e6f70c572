"""Appointment schemas for request/response validation."""

from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import Field, field_validator

from app.schemas.base import CamelModel, StrippedStr

# Clock-skew allowance when checking that an appointment is in the future
SCHEDULING_TOLERANCE = timedelta(seconds=60)


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"


# Every status may move to every status, itself included (a no-op)
ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    status: frozenset(AppointmentStatus) for status in AppointmentStatus
}

# Transitions into these statuses notify the relay
NOTIFYING_STATUSES = frozenset(
    {AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW}
)

CONFIRMED_EVENT = "AppointmentConfirmed"


def status_event_type(status: AppointmentStatus) -> str:
    """Event type recorded for a transition into ``status``."""
    return f"Appointment{status.value}"


class AppointmentCreate(CamelModel):
    """Schema for creating a new appointment."""

    patient_id: StrippedStr = Field(..., min_length=1)
    provider_id: StrippedStr = Field(..., min_length=1)
    scheduled_for: datetime
    reason: str | None = Field(None, max_length=500)

    @field_validator("scheduled_for", mode="before")
    @classmethod
    def parse_iso_timestamp(cls, v: Any) -> Any:
        """Accept only ISO 8601 strings (or datetimes built in code)."""
        if isinstance(v, datetime):
            return v
        if isinstance(v, str):
            try:
                return datetime.fromisoformat(v.strip())
            except ValueError:
                pass
        raise ValueError("scheduledFor must be a valid ISO 8601 timestamp")

    @field_validator("scheduled_for")
    @classmethod
    def validate_future_date(cls, v: datetime) -> datetime:
        """Reject appointments in the past, allowing a small clock skew."""
        if v.tzinfo is None:
            v = v.replace(tzinfo=UTC)
        if v < datetime.now(UTC) - SCHEDULING_TOLERANCE:
            raise ValueError("scheduledFor must be a future datetime (60s tolerance)")
        return v


class AppointmentStatusUpdate(CamelModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus
    reason: str | None = Field(None, max_length=500)


class Appointment(CamelModel):
    """Stored appointment record, also used as the response body."""

    id: str
    patient_id: str
    provider_id: str
    scheduled_for: datetime
    status: AppointmentStatus
    reason: str | None = None
    created_at: datetime
    updated_at: datetime


class AppointmentCreated(CamelModel):
    """Schema for the appointment creation response."""

    id: str
    status: AppointmentStatus
    created_at: datetime


class AppointmentEvent(CamelModel):
    """Immutable record of an appointment transition."""

    appointment_id: str
    event_type: str
    payload: dict[str, Any]
    created_at: datetime


class AppointmentFilters(CamelModel):
    """Schema for appointment filtering."""

    patient_id: StrippedStr | None = None
    provider_id: StrippedStr | None = None
    status: StrippedStr | None = None

    @field_validator("status")
    @classmethod
    def uppercase_status(cls, v: str | None) -> str | None:
        """Statuses are matched case-insensitively."""
        return v.upper() if v else None
