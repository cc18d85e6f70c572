"""Health check endpoints."""

from collections.abc import Callable
from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from app.config import ServiceSettings
from app.database import check_store_connection


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    service: str


class DetailedHealthResponse(BaseModel):
    """Detailed health check response model."""

    status: str
    service: str
    version: str
    environment: str
    store: str


def create_health_router(
    settings: ServiceSettings,
    store_dependency: Callable[[], Any],
) -> APIRouter:
    """
    Build the health routes of one service.

    Args:
        settings: Settings of the service being checked
        store_dependency: Dependency returning that service's store
    """
    router = APIRouter(tags=["Health"])

    @router.get(
        "/health",
        response_model=HealthResponse,
        status_code=status.HTTP_200_OK,
        summary="Basic health check",
    )
    async def health_check() -> HealthResponse:
        """
        Basic health check endpoint.

        Returns:
            Basic health status
        """
        return HealthResponse(status="ok", service=settings.service_name)

    @router.get(
        "/health/detailed",
        response_model=DetailedHealthResponse,
        status_code=status.HTTP_200_OK,
        summary="Detailed health check",
    )
    async def detailed_health_check(
        store: Annotated[Any, Depends(store_dependency)],
    ) -> DetailedHealthResponse:
        """
        Detailed health check including the store.

        Returns:
            Detailed health status
        """
        store_healthy = check_store_connection(store)

        return DetailedHealthResponse(
            status="ok" if store_healthy else "degraded",
            service=settings.service_name,
            version=settings.app_version,
            environment=settings.environment,
            store="healthy" if store_healthy else "unhealthy",
        )

    return router
