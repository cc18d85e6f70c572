"""Appointment state machine and event emission."""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import structlog

from app.core.exceptions import NotFoundException, ValidationException
from app.repositories.appointments import AppointmentStore
from app.schemas.appointments import (
    ALLOWED_TRANSITIONS,
    CONFIRMED_EVENT,
    NOTIFYING_STATUSES,
    Appointment,
    AppointmentCreate,
    AppointmentCreated,
    AppointmentEvent,
    AppointmentFilters,
    AppointmentStatus,
    AppointmentStatusUpdate,
    status_event_type,
)
from app.services.notification_emitter import NotificationEmitter

logger = structlog.get_logger(__name__)


class AppointmentService:
    """
    Applies appointment transitions.

    The service holds no state of its own: every call reads from and writes to
    the store, appends the matching event, and then makes a best-effort
    notification attempt whose outcome never affects the result.
    """

    # Maximum number of appointments returned by a listing
    LIST_LIMIT = 50

    def __init__(self, store: AppointmentStore, emitter: NotificationEmitter):
        """Initialize service with a store and a notification emitter."""
        self.store = store
        self.emitter = emitter

    @staticmethod
    def _snapshot(appointment: Appointment) -> dict[str, Any]:
        """JSON-ready identifying fields of an appointment."""
        data = appointment.model_dump(mode="json", by_alias=True)
        return {
            "appointmentId": data["id"],
            "patientId": data["patientId"],
            "providerId": data["providerId"],
            "scheduledFor": data["scheduledFor"],
        }

    async def create_appointment(self, data: AppointmentCreate) -> AppointmentCreated:
        """
        Create a new appointment in the CONFIRMED status.

        Args:
            data: Validated creation data

        Returns:
            Id, status and creation time of the new appointment
        """
        now = datetime.now(UTC)
        appointment = Appointment(
            id=str(uuid4()),
            patient_id=data.patient_id,
            provider_id=data.provider_id,
            scheduled_for=data.scheduled_for,
            status=AppointmentStatus.CONFIRMED,
            reason=data.reason or None,
            created_at=now,
            updated_at=now,
        )
        self.store.create(appointment)

        payload = self._snapshot(appointment)
        self.store.append_event(
            AppointmentEvent(
                appointment_id=appointment.id,
                event_type=CONFIRMED_EVENT,
                payload=payload,
                created_at=now,
            )
        )
        logger.info("appointment_created", appointment_id=appointment.id)

        await self.emitter.emit(CONFIRMED_EVENT, payload)

        return AppointmentCreated(
            id=appointment.id,
            status=appointment.status,
            created_at=appointment.created_at,
        )

    async def get_appointment(self, appointment_id: str) -> Appointment:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
        """
        appointment = self.store.get_by_id(appointment_id)
        if appointment is None:
            raise NotFoundException("Appointment not found")
        return appointment

    async def list_appointments(self, filters: AppointmentFilters) -> list[Appointment]:
        """List the soonest-scheduled appointments matching every given filter."""
        matched = self.store.find(filters.model_dump())
        matched.sort(key=lambda a: a.scheduled_for)
        return matched[: self.LIST_LIMIT]

    async def update_appointment_status(
        self,
        appointment_id: str,
        data: AppointmentStatusUpdate,
    ) -> Appointment:
        """
        Move an appointment to a new status.

        Setting the current status again is a no-op: the record is returned
        unchanged and neither an event nor a notification is produced.

        Args:
            appointment_id: Appointment ID
            data: Target status and optional reason

        Returns:
            Updated appointment

        Raises:
            NotFoundException: If appointment not found
        """
        current = await self.get_appointment(appointment_id)
        previous_status = current.status
        new_status = data.status

        if new_status == previous_status:
            return current

        if new_status not in ALLOWED_TRANSITIONS[previous_status]:
            raise ValidationException(
                f"Cannot move appointment from {previous_status.value} to {new_status.value}"
            )

        # updatedAt must strictly increase even if the clock has not advanced
        now = max(datetime.now(UTC), current.updated_at + timedelta(microseconds=1))
        updated = self.store.update(
            appointment_id,
            {
                "status": new_status,
                "reason": data.reason or current.reason,
                "updated_at": now,
            },
        )
        if updated is None:
            raise NotFoundException("Appointment not found")

        event_type = status_event_type(new_status)
        self.store.append_event(
            AppointmentEvent(
                appointment_id=appointment_id,
                event_type=event_type,
                payload={
                    "appointmentId": appointment_id,
                    "previousStatus": previous_status.value,
                    "newStatus": new_status.value,
                },
                created_at=now,
            )
        )
        logger.info(
            "appointment_status_changed",
            appointment_id=appointment_id,
            previous_status=previous_status.value,
            new_status=new_status.value,
        )

        if new_status in NOTIFYING_STATUSES:
            payload = self._snapshot(current)
            payload["previousStatus"] = previous_status.value
            await self.emitter.emit(event_type, payload)

        return updated

    async def list_events(self, appointment_id: str) -> list[AppointmentEvent]:
        """
        List the retained events of an appointment, oldest first.

        Raises:
            NotFoundException: If appointment not found
        """
        await self.get_appointment(appointment_id)
        return self.store.list_events(appointment_id)
