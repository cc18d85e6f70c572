from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.database import get_appointment_store, get_notification_store
from app.main import appointment_app, notification_app
from app.repositories.appointments import InMemoryAppointmentStore
from app.repositories.notifications import InMemoryNotificationStore
from app.services.notification_emitter import NotificationEmitter, get_notification_emitter

RELAY_URL = "http://relay.test"


@pytest.fixture
def appointment_store() -> InMemoryAppointmentStore:
    """Fresh in-memory appointment store."""
    return InMemoryAppointmentStore()


@pytest.fixture
def notification_store() -> InMemoryNotificationStore:
    """Fresh in-memory notification store."""
    return InMemoryNotificationStore()


@pytest.fixture
def relay_app(notification_store: InMemoryNotificationStore):
    """Notification relay wired to the in-memory notification store."""
    notification_app.dependency_overrides[get_notification_store] = lambda: notification_store
    yield notification_app
    notification_app.dependency_overrides.clear()


@pytest.fixture
def emitter(relay_app) -> NotificationEmitter:
    """Emitter delivering straight into the in-process relay."""
    return NotificationEmitter(
        base_url=RELAY_URL,
        source="appointment-service",
        transport=ASGITransport(app=relay_app),
    )


@pytest.fixture
def failing_emitter() -> NotificationEmitter:
    """Emitter whose relay is unreachable."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    return NotificationEmitter(
        base_url=RELAY_URL,
        source="appointment-service",
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def make_client() -> Callable[..., AsyncClient]:
    """Factory for clients against the appointment app using a given store and emitter."""

    def factory(store: InMemoryAppointmentStore, emitter: NotificationEmitter) -> AsyncClient:
        appointment_app.dependency_overrides[get_appointment_store] = lambda: store
        appointment_app.dependency_overrides[get_notification_emitter] = lambda: emitter
        return AsyncClient(
            transport=ASGITransport(app=appointment_app, raise_app_exceptions=False),
            base_url="http://test",
        )

    yield factory

    appointment_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(
    make_client: Callable[..., AsyncClient],
    appointment_store: InMemoryAppointmentStore,
    emitter: NotificationEmitter,
) -> AsyncGenerator[AsyncClient, None]:
    """Appointment service client whose notifications reach the in-process relay."""
    async with make_client(appointment_store, emitter) as client:
        yield client


@pytest_asyncio.fixture
async def relay_client(relay_app) -> AsyncGenerator[AsyncClient, None]:
    """Notification relay client."""
    async with AsyncClient(transport=ASGITransport(app=relay_app), base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_appointment_data() -> dict:
    """Sample appointment data for testing."""
    return {
        "patientId": "patient-1",
        "providerId": "provider-1",
        "scheduledFor": (datetime.now(UTC) + timedelta(hours=1)).isoformat(),
        "reason": "Annual checkup",
    }
