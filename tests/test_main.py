"""Tests for running both applications side by side."""

import pytest
from httpx import ASGITransport, AsyncClient
from prometheus_client import REGISTRY, generate_latest

from app.main import appointment_app, notification_app


@pytest.mark.asyncio
async def test_both_apps_serve_in_one_process() -> None:
    """Test both services answer in the same process after both build their middleware."""
    status_codes = []
    for app in (appointment_app, notification_app):
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            status_codes.append((await client.get("/health")).status_code)

    assert status_codes == [200, 200]


@pytest.mark.asyncio
async def test_in_progress_gauges_are_named_per_service() -> None:
    """Test each service registers its own in-progress gauge in the default registry."""
    for app in (appointment_app, notification_app):
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/metrics")
        assert response.status_code == 200

    exposition = generate_latest(REGISTRY).decode()
    assert "appointment_service_http_requests_inprogress" in exposition
    assert "notification_service_http_requests_inprogress" in exposition
