"""Tests for notification relay endpoints."""

import pytest
from httpx import AsyncClient

from app.repositories.notifications import InMemoryNotificationStore


@pytest.mark.asyncio
async def test_health_check(relay_client: AsyncClient) -> None:
    """Test health check endpoint."""
    response = await relay_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "notification-service"}


@pytest.mark.asyncio
async def test_accept_notification_defaults(
    relay_client: AsyncClient,
    notification_store: InMemoryNotificationStore,
) -> None:
    """Test that channel, recipient and status are defaulted."""
    response = await relay_client.post(
        "/notifications",
        json={
            "type": "AppointmentConfirmed",
            "payload": {"appointmentId": "apt-1", "patientId": "patient-1"},
            "source": "appointment-service",
        },
    )
    assert response.status_code == 202
    data = response.json()
    assert data["status"] == "SENT"
    assert set(data) == {"id", "status"}

    stored = notification_store.get_by_id(data["id"])
    assert stored is not None
    assert stored.channel == "EMAIL"
    assert stored.recipient == "patient-1"
    assert stored.last_error is None


@pytest.mark.asyncio
async def test_get_notification(relay_client: AsyncClient) -> None:
    """Test fetching a recorded notification."""
    created = await relay_client.post(
        "/notifications",
        json={
            "type": "AppointmentCANCELLED",
            "channel": "sms",
            "recipient": "+15550100",
            "payload": {"patientId": "patient-1"},
            "source": "appointment-service",
            "overwriteStatus": "queued",
        },
    )
    assert created.json()["status"] == "QUEUED"

    response = await relay_client.get(f"/notifications/{created.json()['id']}")
    assert response.status_code == 200
    data = response.json()
    assert data["channel"] == "SMS"
    assert data["recipient"] == "+15550100"
    assert data["status"] == "QUEUED"
    assert data["lastError"] is None
    assert data["createdAt"] == data["updatedAt"]


@pytest.mark.asyncio
async def test_accept_notification_keeps_payload_verbatim(
    relay_client: AsyncClient,
    notification_store: InMemoryNotificationStore,
) -> None:
    """Test payload keys and values are not trimmed, so they do not drive recipient inference."""
    response = await relay_client.post(
        "/notifications",
        json={
            "type": " AppointmentConfirmed ",
            "payload": {" patientId ": " patient-1 "},
            "source": "appointment-service",
        },
    )
    assert response.status_code == 202

    stored = notification_store.get_by_id(response.json()["id"])
    assert stored is not None
    assert stored.type == "AppointmentConfirmed"
    assert stored.payload == {" patientId ": " patient-1 "}
    assert stored.recipient == "unknown"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"patientId": "p-1", "providerId": "d-1"}, "p-1"),
        ({"providerId": "d-1"}, "d-1"),
        ({"appointmentId": "apt-1"}, "unknown"),
    ],
)
async def test_recipient_inference(
    relay_client: AsyncClient,
    notification_store: InMemoryNotificationStore,
    payload: dict,
    expected: str,
) -> None:
    """Test recipient falls back from patient to provider to unknown."""
    response = await relay_client.post(
        "/notifications",
        json={"type": "Reminder", "payload": payload, "source": "scheduler"},
    )
    assert response.status_code == 202
    assert notification_store.get_by_id(response.json()["id"]).recipient == expected


@pytest.mark.asyncio
async def test_get_missing_notification(relay_client: AsyncClient) -> None:
    """Test that unknown ids return 404."""
    response = await relay_client.get("/notifications/nope")
    assert response.status_code == 404
    assert response.json()["message"] == "Notification not found"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("body", "field"),
    [
        ({"payload": {}, "source": "s"}, "type"),
        ({"type": "t", "source": "s"}, "payload"),
        ({"type": "t", "payload": "text", "source": "s"}, "payload"),
        ({"type": "t", "payload": {}}, "source"),
        ({"type": "t", "payload": {}, "source": "s", "channel": "FAX"}, "channel"),
        ({"type": "t", "payload": {}, "source": "s", "overwriteStatus": "LOST"}, "overwriteStatus"),
        ({"type": "t" * 65, "payload": {}, "source": "s"}, "type"),
    ],
)
async def test_accept_notification_validation(
    relay_client: AsyncClient,
    body: dict,
    field: str,
) -> None:
    """Test invalid envelopes are rejected with field-level details."""
    response = await relay_client.post("/notifications", json=body)
    assert response.status_code == 400
    assert field in {d["field"] for d in response.json()["details"]}


@pytest.mark.asyncio
async def test_list_notifications_newest_first(relay_client: AsyncClient) -> None:
    """Test listing order and filters."""
    ids = []
    for i, notification_type in enumerate(["A", "B", "A"]):
        response = await relay_client.post(
            "/notifications",
            json={
                "type": notification_type,
                "payload": {"patientId": f"p-{i}"},
                "source": "test",
                "overwriteStatus": "FAILED" if i == 1 else None,
            },
        )
        ids.append(response.json()["id"])

    response = await relay_client.get("/notifications")
    assert [n["id"] for n in response.json()] == list(reversed(ids))

    response = await relay_client.get("/notifications", params={"type": "A"})
    assert [n["id"] for n in response.json()] == [ids[2], ids[0]]

    response = await relay_client.get("/notifications", params={"status": "failed"})
    assert [n["id"] for n in response.json()] == [ids[1]]

    response = await relay_client.get("/notifications", params={"recipient": "p-2"})
    assert [n["id"] for n in response.json()] == [ids[2]]


@pytest.mark.asyncio
async def test_list_notifications_is_capped(relay_client: AsyncClient) -> None:
    """Test that at most 100 notifications are listed."""
    for i in range(105):
        await relay_client.post(
            "/notifications",
            json={"type": "Bulk", "payload": {"n": i}, "source": "test"},
        )

    response = await relay_client.get("/notifications")
    data = response.json()
    assert len(data) == 100
    assert data[0]["payload"] == {"n": 104}
