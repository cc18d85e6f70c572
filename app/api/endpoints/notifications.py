"""Notification relay endpoints."""

from fastapi import APIRouter, Query, status

from app.dependencies import NotificationServiceDep
from app.schemas.notifications import (
    Notification,
    NotificationAccepted,
    NotificationCreate,
    NotificationFilters,
)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.post(
    "",
    response_model=NotificationAccepted,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Accept notification",
)
async def accept_notification(
    data: NotificationCreate,
    service: NotificationServiceDep,
) -> NotificationAccepted:
    """
    Record a notification and dispatch it.

    Args:
        data: Notification envelope
        service: Notification service

    Returns:
        Assigned id and status
    """
    return await service.accept_notification(data)


@router.get(
    "",
    response_model=list[Notification],
    status_code=status.HTTP_200_OK,
    summary="List notifications",
)
async def list_notifications(
    service: NotificationServiceDep,
    type_filter: str | None = Query(None, alias="type"),
    recipient: str | None = Query(None),
    status_filter: str | None = Query(None, alias="status"),
) -> list[Notification]:
    """List up to 100 notifications, newest first."""
    filters = NotificationFilters(
        type=type_filter or None,
        recipient=recipient or None,
        status=status_filter or None,
    )
    return await service.list_notifications(filters)


@router.get(
    "/{notification_id}",
    response_model=Notification,
    status_code=status.HTTP_200_OK,
    summary="Get notification by ID",
)
async def get_notification(
    notification_id: str,
    service: NotificationServiceDep,
) -> Notification:
    """Get a specific notification by ID."""
    return await service.get_notification(notification_id)
