"""Durable storage for the notification relay's bounded log."""

import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import redis
import structlog
from pydantic import ValidationError

from app.core.exceptions import StoreException
from app.repositories.base import MAX_LOG_ENTRIES, JsonStateFile, RingLog, matches
from app.schemas.notifications import Notification

logger = structlog.get_logger(__name__)


class NotificationStore(ABC):
    """Storage contract for notifications; only the newest entries are retained."""

    @abstractmethod
    def create(self, notification: Notification) -> Notification:
        """Append a notification, evicting the oldest when the log is full."""

    @abstractmethod
    def get_by_id(self, notification_id: str) -> Notification | None:
        """Fetch a retained notification by exact id."""

    @abstractmethod
    def find(self, filters: dict[str, Any] | None = None) -> list[Notification]:
        """Return retained notifications matching every non-None filter, oldest first."""

    def check(self) -> bool:
        """Check if the backing medium is usable."""
        return True


class InMemoryNotificationStore(NotificationStore):
    """Process-local ring of notifications with an id index."""

    def __init__(self, max_entries: int = MAX_LOG_ENTRIES):
        """Initialize an empty store."""
        self._lock = threading.RLock()
        self._log: RingLog[Notification] = RingLog(max_entries)
        self._index: dict[str, Notification] = {}

    def _persist(self) -> None:
        """Hook called after every mutation while the lock is held."""

    def create(self, notification: Notification) -> Notification:
        with self._lock:
            if notification.id in self._index:
                raise StoreException(f"Notification {notification.id} already exists")
            evicted = self._log.append(notification)
            if evicted is not None:
                self._index.pop(evicted.id, None)
            self._index[notification.id] = notification
            self._persist()
        return notification

    def get_by_id(self, notification_id: str) -> Notification | None:
        with self._lock:
            return self._index.get(notification_id)

    def find(self, filters: dict[str, Any] | None = None) -> list[Notification]:
        with self._lock:
            return [n for n in self._log if matches(n, filters or {})]

    def __len__(self) -> int:
        return len(self._log)


class FileNotificationStore(InMemoryNotificationStore):
    """In-memory ring mirrored to a JSON file that is rewritten on every append."""

    def __init__(self, path: str | Path, max_entries: int = MAX_LOG_ENTRIES):
        """Initialize the store and load any existing state from ``path``."""
        super().__init__(max_entries=max_entries)
        self._file = JsonStateFile(path)
        self._load()

    def _load(self) -> None:
        state = self._file.load()
        try:
            notifications = [Notification.model_validate(n) for n in state.get("notifications", [])]
        except (ValidationError, TypeError) as e:
            logger.warning("store_file_unreadable", path=str(self._file.path), error=str(e))
            return

        self._log = RingLog(self._log.maxlen, notifications)
        self._index = {n.id: n for n in self._log}
        logger.info(
            "notification_store_loaded",
            path=str(self._file.path),
            notifications=len(self._log),
        )

    def _persist(self) -> None:
        self._file.write(
            {"notifications": [n.model_dump(mode="json", by_alias=True) for n in self._log]}
        )

    def check(self) -> bool:
        return self._file.writable()


class RedisNotificationStore(NotificationStore):
    """Store backed by a Redis list trimmed to the newest entries."""

    def __init__(
        self,
        redis_client: redis.Redis,
        prefix: str = "notifications",
        max_entries: int = MAX_LOG_ENTRIES,
    ):
        """Initialize with a Redis client (decode_responses enabled)."""
        self.redis = redis_client
        self.log_key = f"{prefix}:log"
        self.max_entries = max_entries

    def _all(self) -> list[Notification]:
        return [Notification.model_validate_json(raw) for raw in self.redis.lrange(self.log_key, 0, -1)]

    def create(self, notification: Notification) -> Notification:
        pipe = self.redis.pipeline()
        pipe.rpush(self.log_key, notification.model_dump_json(by_alias=True))
        pipe.ltrim(self.log_key, -self.max_entries, -1)
        pipe.execute()
        return notification

    def get_by_id(self, notification_id: str) -> Notification | None:
        return next((n for n in self._all() if n.id == notification_id), None)

    def find(self, filters: dict[str, Any] | None = None) -> list[Notification]:
        return [n for n in self._all() if matches(n, filters or {})]

    def check(self) -> bool:
        try:
            self.redis.ping()
            return True
        except redis.RedisError:
            return False
