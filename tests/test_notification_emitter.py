"""Tests for the best-effort notification emitter."""

import asyncio
import json
import time

import httpx
import pytest

from app.repositories.notifications import InMemoryNotificationStore
from app.services.notification_emitter import NotificationEmitter


def _emitter(handler, **kwargs) -> NotificationEmitter:
    return NotificationEmitter(
        base_url="http://relay.test/",
        source="appointment-service",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_deliver_posts_envelope() -> None:
    """Test the envelope shape and target URL."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(202, json={"id": "n-1", "status": "SENT"})

    delivered = await _emitter(handler).deliver("AppointmentConfirmed", {"appointmentId": "a-1"})

    assert delivered is True
    assert len(seen) == 1
    assert str(seen[0].url) == "http://relay.test/notifications"
    assert json.loads(seen[0].content) == {
        "type": "AppointmentConfirmed",
        "payload": {"appointmentId": "a-1"},
        "source": "appointment-service",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "handler",
    [
        lambda request: httpx.Response(500),
        lambda request: httpx.Response(400, json={"message": "Validation failed"}),
    ],
)
async def test_deliver_non_2xx_is_swallowed(handler) -> None:
    """Test error replies are reported as a failed attempt, not raised."""
    assert await _emitter(handler).deliver("AppointmentCANCELLED", {}) is False


@pytest.mark.asyncio
async def test_deliver_timeout_is_swallowed() -> None:
    """Test timeouts are reported as a failed attempt, not raised."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    assert await _emitter(handler, timeout_ms=50).deliver("AppointmentNO_SHOW", {}) is False


@pytest.mark.asyncio
async def test_deliver_timeout_bounds_a_trickling_relay() -> None:
    """Test a relay that keeps sending bytes cannot hold the attempt past its timeout."""

    async def trickle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        await reader.readuntil(b"\r\n\r\n")
        writer.write(b"HTTP/1.1 202 Accepted\r\nContent-Length: 10\r\n\r\n")
        try:
            for _ in range(10):
                await asyncio.sleep(0.2)
                writer.write(b"x")
                await writer.drain()
        except ConnectionError:
            pass
        finally:
            writer.close()

    server = await asyncio.start_server(trickle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    emitter = NotificationEmitter(
        base_url=f"http://127.0.0.1:{port}",
        source="appointment-service",
        timeout_ms=500,
    )

    async with server:
        started = time.perf_counter()
        delivered = await emitter.deliver("AppointmentNO_SHOW", {})
        elapsed = time.perf_counter() - started

    assert delivered is False
    assert elapsed < 1.5


@pytest.mark.asyncio
async def test_deliver_makes_a_single_attempt() -> None:
    """Test failures are never retried."""
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        raise httpx.ConnectError("refused", request=request)

    await _emitter(handler).emit("AppointmentCOMPLETED", {})
    assert calls == 1


@pytest.mark.asyncio
async def test_detached_emit_returns_before_delivery() -> None:
    """Test detached attempts run in the background and can be drained."""
    release = asyncio.Event()
    delivered: list[str] = []

    async def slow_handler(request: httpx.Request) -> httpx.Response:
        await release.wait()
        delivered.append(json.loads(request.content)["type"])
        return httpx.Response(202)

    emitter = _emitter(slow_handler, detached=True)
    await emitter.emit("AppointmentConfirmed", {})

    assert emitter.pending == 1
    assert delivered == []

    release.set()
    await emitter.drain()

    assert delivered == ["AppointmentConfirmed"]
    assert emitter.pending == 0


@pytest.mark.asyncio
async def test_emit_reaches_relay(
    emitter: NotificationEmitter,
    notification_store: InMemoryNotificationStore,
) -> None:
    """Test delivery into the in-process relay records the notification."""
    delivered = await emitter.deliver(
        "AppointmentCANCELLED",
        {"appointmentId": "a-1", "providerId": "d-1", "previousStatus": "CONFIRMED"},
    )

    assert delivered is True
    [notification] = notification_store.find()
    assert notification.type == "AppointmentCANCELLED"
    assert notification.recipient == "d-1"
    assert notification.source == "appointment-service"
