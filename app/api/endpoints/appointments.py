"""Appointment endpoints."""

from fastapi import APIRouter, Query, status

from app.dependencies import AppointmentServiceDep
from app.schemas.appointments import (
    Appointment,
    AppointmentCreate,
    AppointmentCreated,
    AppointmentEvent,
    AppointmentFilters,
    AppointmentStatusUpdate,
)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.post(
    "",
    response_model=AppointmentCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Create new appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    service: AppointmentServiceDep,
) -> AppointmentCreated:
    """
    Create a confirmed appointment.

    The relay is notified on a best-effort basis; its outcome never changes
    this response.
    """
    return await service.create_appointment(data)


@router.get(
    "",
    response_model=list[Appointment],
    status_code=status.HTTP_200_OK,
    summary="List appointments",
)
async def list_appointments(
    service: AppointmentServiceDep,
    patient_id: str | None = Query(None, alias="patientId"),
    provider_id: str | None = Query(None, alias="providerId"),
    status_filter: str | None = Query(None, alias="status"),
) -> list[Appointment]:
    """
    List up to 50 appointments, soonest first.

    Args:
        service: Appointment service
        patient_id: Filter by patient
        provider_id: Filter by provider
        status_filter: Filter by status (case-insensitive)
    """
    filters = AppointmentFilters(
        patient_id=patient_id or None,
        provider_id=provider_id or None,
        status=status_filter or None,
    )
    return await service.list_appointments(filters)


@router.get(
    "/{appointment_id}",
    response_model=Appointment,
    status_code=status.HTTP_200_OK,
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: str,
    service: AppointmentServiceDep,
) -> Appointment:
    """Get a specific appointment by ID."""
    return await service.get_appointment(appointment_id)


@router.patch(
    "/{appointment_id}/status",
    response_model=Appointment,
    status_code=status.HTTP_200_OK,
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: str,
    data: AppointmentStatusUpdate,
    service: AppointmentServiceDep,
) -> Appointment:
    """
    Update appointment status (cancel, complete, mark no-show, re-confirm).

    Repeating the current status returns the record unchanged.
    """
    return await service.update_appointment_status(appointment_id, data)


@router.get(
    "/{appointment_id}/events",
    response_model=list[AppointmentEvent],
    status_code=status.HTTP_200_OK,
    summary="List appointment events",
)
async def list_appointment_events(
    appointment_id: str,
    service: AppointmentServiceDep,
) -> list[AppointmentEvent]:
    """Retained transition history of an appointment, oldest first."""
    return await service.list_events(appointment_id)
