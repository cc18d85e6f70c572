"""FastAPI application entry points for both services."""

import argparse
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CollectorRegistry
from prometheus_fastapi_instrumentator import Instrumentator

from app.api.router import create_appointment_router, create_notification_router
from app.config import (
    AppointmentSettings,
    NotificationSettings,
    ServiceSettings,
    get_appointment_settings,
    get_notification_settings,
)
from app.core.redis_client import close_redis_connection
from app.database import check_store_connection, get_appointment_store, get_notification_store
from app.middleware.error_handler import register_exception_handlers
from app.middleware.logging import LoggingMiddleware, configure_logging
from app.services.notification_emitter import close_notification_emitter

logger = structlog.get_logger()


def _build_lifespan(
    settings: ServiceSettings,
    store_factory: Callable[[], Any],
    on_shutdown: Callable[[], Any] | None = None,
) -> Callable[[FastAPI], Any]:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        Application lifespan manager.

        Handles startup and shutdown events.
        """
        # Startup
        logger.info(
            "application_startup",
            service=settings.service_name,
            environment=settings.environment,
            store_backend=settings.store_backend,
        )

        store = store_factory()
        if check_store_connection(store):
            logger.info("store_ready", service=settings.service_name)
        else:
            logger.error("store_unavailable", service=settings.service_name)

        yield

        # Shutdown
        logger.info("application_shutdown", service=settings.service_name)
        if on_shutdown is not None:
            await on_shutdown()
        close_redis_connection()

    return lifespan


def create_app(
    settings: ServiceSettings,
    router: APIRouter,
    description: str,
    lifespan: Callable[[FastAPI], Any],
) -> FastAPI:
    """Assemble a service application with the shared middleware stack."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title=settings.service_name,
        version=settings.app_version,
        description=description,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware, service=settings.service_name)

    register_exception_handlers(app)

    app.include_router(router, prefix=settings.api_prefix)

    # The in-progress gauge always lands in the default registry, so its name
    # must be unique per service for both apps to share a process
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=False,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/docs", "/redoc", "/openapi.json", "/metrics"],
        inprogress_name=f"{settings.service_name.replace('-', '_')}_http_requests_inprogress",
        inprogress_labels=True,
        registry=CollectorRegistry(),
    ).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    return app


def create_appointment_app(settings: AppointmentSettings | None = None) -> FastAPI:
    """Create the appointment registry application."""
    settings = settings or get_appointment_settings()
    return create_app(
        settings,
        create_appointment_router(settings),
        description="Appointment registry and lifecycle state machine",
        lifespan=_build_lifespan(settings, get_appointment_store, close_notification_emitter),
    )


def create_notification_app(settings: NotificationSettings | None = None) -> FastAPI:
    """Create the notification relay application."""
    settings = settings or get_notification_settings()
    return create_app(
        settings,
        create_notification_router(settings),
        description="Notification relay with simulated dispatch",
        lifespan=_build_lifespan(settings, get_notification_store),
    )


appointment_app = create_appointment_app()
notification_app = create_notification_app()


def run(service: str) -> None:
    """Serve one of the applications with uvicorn."""
    import uvicorn

    settings: ServiceSettings
    if service == "appointment":
        settings, target = get_appointment_settings(), "app.main:appointment_app"
    else:
        settings, target = get_notification_settings(), "app.main:notification_app"

    uvicorn.run(
        target,
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )


def run_appointment_service() -> None:
    """Console entry point for the appointment registry."""
    run("appointment")


def run_notification_service() -> None:
    """Console entry point for the notification relay."""
    run("notification")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run one of the services")
    parser.add_argument("service", choices=["appointment", "notification"])
    args = parser.parse_args()
    run(args.service)
