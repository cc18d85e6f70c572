"""Durable storage for appointments and their event log."""

import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import redis
import structlog
from pydantic import ValidationError

from app.core.exceptions import StoreException
from app.repositories.base import MAX_LOG_ENTRIES, JsonStateFile, RingLog, matches
from app.schemas.appointments import Appointment, AppointmentEvent

logger = structlog.get_logger(__name__)


class AppointmentStore(ABC):
    """Storage contract for appointments and the appointment event log."""

    @abstractmethod
    def create(self, appointment: Appointment) -> Appointment:
        """Persist a new appointment."""

    @abstractmethod
    def get_by_id(self, appointment_id: str) -> Appointment | None:
        """Fetch an appointment by exact id."""

    @abstractmethod
    def find(self, filters: dict[str, Any] | None = None) -> list[Appointment]:
        """Return appointments matching every non-None filter, unsorted and unbounded."""

    @abstractmethod
    def update(self, appointment_id: str, fields: dict[str, Any]) -> Appointment | None:
        """Merge ``fields`` into an appointment; None if it does not exist."""

    @abstractmethod
    def append_event(self, event: AppointmentEvent) -> None:
        """Append to the bounded event log."""

    @abstractmethod
    def list_events(self, appointment_id: str | None = None) -> list[AppointmentEvent]:
        """Return retained events, oldest first."""

    def check(self) -> bool:
        """Check if the backing medium is usable."""
        return True


class InMemoryAppointmentStore(AppointmentStore):
    """Process-local store; each operation holds a lock."""

    def __init__(self, max_events: int = MAX_LOG_ENTRIES):
        """Initialize an empty store."""
        self._lock = threading.RLock()
        self._appointments: dict[str, Appointment] = {}
        self._events: RingLog[AppointmentEvent] = RingLog(max_events)

    def _persist(self) -> None:
        """Hook called after every mutation while the lock is held."""

    def create(self, appointment: Appointment) -> Appointment:
        with self._lock:
            if appointment.id in self._appointments:
                raise StoreException(f"Appointment {appointment.id} already exists")
            self._appointments[appointment.id] = appointment
            self._persist()
        return appointment

    def get_by_id(self, appointment_id: str) -> Appointment | None:
        with self._lock:
            return self._appointments.get(appointment_id)

    def find(self, filters: dict[str, Any] | None = None) -> list[Appointment]:
        with self._lock:
            return [a for a in self._appointments.values() if matches(a, filters or {})]

    def update(self, appointment_id: str, fields: dict[str, Any]) -> Appointment | None:
        with self._lock:
            current = self._appointments.get(appointment_id)
            if current is None:
                return None
            updated = current.model_copy(update=fields)
            self._appointments[appointment_id] = updated
            self._persist()
        return updated

    def append_event(self, event: AppointmentEvent) -> None:
        with self._lock:
            self._events.append(event)
            self._persist()

    def list_events(self, appointment_id: str | None = None) -> list[AppointmentEvent]:
        with self._lock:
            return [e for e in self._events if matches(e, {"appointment_id": appointment_id})]


class FileAppointmentStore(InMemoryAppointmentStore):
    """In-memory store mirrored to a JSON file that is rewritten on every mutation."""

    def __init__(self, path: str | Path, max_events: int = MAX_LOG_ENTRIES):
        """Initialize the store and load any existing state from ``path``."""
        super().__init__(max_events=max_events)
        self._file = JsonStateFile(path)
        self._load()

    def _load(self) -> None:
        state = self._file.load()
        try:
            appointments = [Appointment.model_validate(a) for a in state.get("appointments", [])]
            events = [AppointmentEvent.model_validate(e) for e in state.get("events", [])]
        except (ValidationError, TypeError) as e:
            logger.warning("store_file_unreadable", path=str(self._file.path), error=str(e))
            return

        self._appointments = {a.id: a for a in appointments}
        self._events = RingLog(self._events.maxlen, events)
        logger.info(
            "appointment_store_loaded",
            path=str(self._file.path),
            appointments=len(self._appointments),
            events=len(self._events),
        )

    def _persist(self) -> None:
        self._file.write(
            {
                "appointments": [
                    a.model_dump(mode="json", by_alias=True) for a in self._appointments.values()
                ],
                "events": [e.model_dump(mode="json", by_alias=True) for e in self._events],
            }
        )

    def check(self) -> bool:
        return self._file.writable()


class RedisAppointmentStore(AppointmentStore):
    """Store backed by a Redis hash of appointments and a trimmed Redis list of events."""

    def __init__(
        self,
        redis_client: redis.Redis,
        prefix: str = "appointments",
        max_events: int = MAX_LOG_ENTRIES,
    ):
        """Initialize with a Redis client (decode_responses enabled)."""
        self.redis = redis_client
        self.records_key = f"{prefix}:records"
        self.events_key = f"{prefix}:events"
        self.max_events = max_events

    def create(self, appointment: Appointment) -> Appointment:
        created = self.redis.hsetnx(
            self.records_key, appointment.id, appointment.model_dump_json(by_alias=True)
        )
        if not created:
            raise StoreException(f"Appointment {appointment.id} already exists")
        return appointment

    def get_by_id(self, appointment_id: str) -> Appointment | None:
        raw = self.redis.hget(self.records_key, appointment_id)
        if raw is None:
            return None
        return Appointment.model_validate_json(raw)

    def find(self, filters: dict[str, Any] | None = None) -> list[Appointment]:
        records = [Appointment.model_validate_json(raw) for raw in self.redis.hvals(self.records_key)]
        return [a for a in records if matches(a, filters or {})]

    def update(self, appointment_id: str, fields: dict[str, Any]) -> Appointment | None:
        current = self.get_by_id(appointment_id)
        if current is None:
            return None
        updated = current.model_copy(update=fields)
        self.redis.hset(self.records_key, appointment_id, updated.model_dump_json(by_alias=True))
        return updated

    def append_event(self, event: AppointmentEvent) -> None:
        pipe = self.redis.pipeline()
        pipe.rpush(self.events_key, event.model_dump_json(by_alias=True))
        pipe.ltrim(self.events_key, -self.max_events, -1)
        pipe.execute()

    def list_events(self, appointment_id: str | None = None) -> list[AppointmentEvent]:
        events = [
            AppointmentEvent.model_validate_json(raw)
            for raw in self.redis.lrange(self.events_key, 0, -1)
        ]
        return [e for e in events if matches(e, {"appointment_id": appointment_id})]

    def check(self) -> bool:
        try:
            self.redis.ping()
            return True
        except redis.RedisError:
            return False
