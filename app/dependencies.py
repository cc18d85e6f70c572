"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends

from app.database import get_appointment_store, get_notification_store
from app.repositories.appointments import AppointmentStore
from app.repositories.notifications import NotificationStore
from app.services.appointment_service import AppointmentService
from app.services.notification_emitter import NotificationEmitter, get_notification_emitter
from app.services.notification_service import NotificationService


def get_appointment_service(
    store: Annotated[AppointmentStore, Depends(get_appointment_store)],
    emitter: Annotated[NotificationEmitter, Depends(get_notification_emitter)],
) -> AppointmentService:
    """Build the appointment service for a request."""
    return AppointmentService(store, emitter)


def get_notification_service(
    store: Annotated[NotificationStore, Depends(get_notification_store)],
) -> NotificationService:
    """Build the notification service for a request."""
    return NotificationService(store)


# Type aliases for dependency injection
AppointmentServiceDep = Annotated[AppointmentService, Depends(get_appointment_service)]
NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
