"""Notification relay: records inbound notifications and simulates dispatch."""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import structlog

from app.core.exceptions import NotFoundException
from app.repositories.notifications import NotificationStore
from app.schemas.notifications import (
    Notification,
    NotificationAccepted,
    NotificationCreate,
    NotificationFilters,
    NotificationStatus,
)

logger = structlog.get_logger(__name__)


class NotificationService:
    """Service for accepting and querying notifications."""

    # Maximum number of notifications returned by a listing
    LIST_LIMIT = 100

    def __init__(self, store: NotificationStore):
        """Initialize service with a notification store."""
        self.store = store

    @staticmethod
    def infer_recipient(recipient: str | None, payload: dict[str, Any]) -> str:
        """Explicit recipient, else the payload's patient, else its provider."""
        inferred = recipient or payload.get("patientId") or payload.get("providerId")
        return str(inferred) if inferred else "unknown"

    @staticmethod
    def simulate_dispatch(notification: Notification) -> None:
        """Stand-in for a real channel integration; always succeeds."""
        logger.info(
            "notification_dispatched",
            notification_id=notification.id,
            type=notification.type,
            channel=notification.channel.value,
            recipient=notification.recipient,
            payload=notification.payload,
        )

    async def accept_notification(self, data: NotificationCreate) -> NotificationAccepted:
        """
        Record a notification and dispatch it immediately.

        Args:
            data: Validated notification envelope

        Returns:
            Assigned id and resulting status
        """
        now = datetime.now(UTC)
        notification = Notification(
            id=str(uuid4()),
            type=data.type,
            channel=data.channel,
            recipient=self.infer_recipient(data.recipient, data.payload),
            payload=data.payload,
            source=data.source,
            status=data.overwrite_status or NotificationStatus.SENT,
            created_at=now,
            updated_at=now,
            last_error=None,
        )
        self.store.create(notification)
        self.simulate_dispatch(notification)

        return NotificationAccepted(id=notification.id, status=notification.status)

    async def get_notification(self, notification_id: str) -> Notification:
        """
        Get notification by ID.

        Raises:
            NotFoundException: If notification not found
        """
        notification = self.store.get_by_id(notification_id)
        if notification is None:
            raise NotFoundException("Notification not found")
        return notification

    async def list_notifications(self, filters: NotificationFilters) -> list[Notification]:
        """List the newest notifications matching every given filter."""
        # Stored oldest first; reversing keeps newer entries ahead on equal timestamps
        matched = list(reversed(self.store.find(filters.model_dump())))
        matched.sort(key=lambda n: n.created_at, reverse=True)
        return matched[: self.LIST_LIMIT]
