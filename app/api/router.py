"""API router configuration."""

from fastapi import APIRouter

from app.api.endpoints import appointments, notifications
from app.api.endpoints.health import create_health_router
from app.config import AppointmentSettings, NotificationSettings
from app.database import get_appointment_store, get_notification_store


def create_appointment_router(settings: AppointmentSettings) -> APIRouter:
    """Routes served by the appointment registry."""
    api_router = APIRouter()
    api_router.include_router(create_health_router(settings, get_appointment_store))
    api_router.include_router(appointments.router)
    return api_router


def create_notification_router(settings: NotificationSettings) -> APIRouter:
    """Routes served by the notification relay."""
    api_router = APIRouter()
    api_router.include_router(create_health_router(settings, get_notification_store))
    api_router.include_router(notifications.router)
    return api_router
