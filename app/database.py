"""Store construction and process-wide store instances."""

from app.config import (
    AppointmentSettings,
    NotificationSettings,
    get_appointment_settings,
    get_notification_settings,
)
from app.core.redis_client import get_redis_client
from app.repositories.appointments import (
    AppointmentStore,
    FileAppointmentStore,
    InMemoryAppointmentStore,
    RedisAppointmentStore,
)
from app.repositories.notifications import (
    FileNotificationStore,
    InMemoryNotificationStore,
    NotificationStore,
    RedisNotificationStore,
)

_appointment_store: AppointmentStore | None = None
_notification_store: NotificationStore | None = None


def build_appointment_store(settings: AppointmentSettings) -> AppointmentStore:
    """Create the appointment store selected by ``STORE_BACKEND``."""
    if settings.store_backend == "memory":
        return InMemoryAppointmentStore()
    if settings.store_backend == "redis":
        return RedisAppointmentStore(get_redis_client(settings.redis_url))
    return FileAppointmentStore(settings.db_path)


def build_notification_store(settings: NotificationSettings) -> NotificationStore:
    """Create the notification store selected by ``STORE_BACKEND``."""
    if settings.store_backend == "memory":
        return InMemoryNotificationStore()
    if settings.store_backend == "redis":
        return RedisNotificationStore(get_redis_client(settings.redis_url))
    return FileNotificationStore(settings.db_path)


def get_appointment_store() -> AppointmentStore:
    """Dependency returning the shared appointment store."""
    global _appointment_store

    if _appointment_store is None:
        _appointment_store = build_appointment_store(get_appointment_settings())
    return _appointment_store


def get_notification_store() -> NotificationStore:
    """Dependency returning the shared notification store."""
    global _notification_store

    if _notification_store is None:
        _notification_store = build_notification_store(get_notification_settings())
    return _notification_store


def check_store_connection(store: AppointmentStore | NotificationStore) -> bool:
    """Check if a store is healthy."""
    try:
        return store.check()
    except Exception:
        return False
