"""Best-effort client for the notification relay."""

import asyncio
from typing import Any

import httpx
import structlog

from app.config import get_appointment_settings

logger = structlog.get_logger(__name__)


class NotificationEmitter:
    """
    Posts notification envelopes to the relay.

    Each notification gets exactly one attempt bounded by a timeout. Failures
    (network errors, timeouts, non-2xx replies) are logged and never raised,
    so the caller's own outcome cannot depend on the relay.
    """

    def __init__(
        self,
        base_url: str,
        source: str,
        timeout_ms: int = 2000,
        detached: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the emitter.

        Args:
            base_url: Relay base URL
            source: Value sent as the envelope ``source``
            timeout_ms: Per-attempt timeout in milliseconds
            detached: Run attempts as background tasks instead of awaiting them
            transport: Optional httpx transport (used by tests)
        """
        self.endpoint = f"{base_url.rstrip('/')}/notifications"
        self.source = source
        self.timeout_s = timeout_ms / 1000
        self.timeout = httpx.Timeout(self.timeout_s)
        self.detached = detached
        self.transport = transport
        self._pending: set[asyncio.Task[bool]] = set()

    def build_envelope(self, event_type: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Build the JSON body sent to the relay."""
        return {"type": event_type, "payload": payload, "source": self.source}

    async def deliver(self, event_type: str, payload: dict[str, Any]) -> bool:
        """
        Make a single delivery attempt.

        Returns:
            True if the relay answered with a 2xx status, False otherwise
        """
        envelope = self.build_envelope(event_type, payload)
        try:
            # httpx times each phase separately; the deadline covers the whole attempt
            async with asyncio.timeout(self.timeout_s):
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self.transport
                ) as client:
                    response = await client.post(self.endpoint, json=envelope)
                    response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "notification_emit_failed",
                type=event_type,
                status_code=e.response.status_code,
            )
            return False
        except TimeoutError:
            logger.warning(
                "notification_emit_failed",
                type=event_type,
                error="timed out",
                timeout_ms=int(self.timeout_s * 1000),
            )
            return False
        except Exception as e:
            logger.warning(
                "notification_emit_failed",
                type=event_type,
                error=str(e) or e.__class__.__name__,
            )
            return False

        logger.info("notification_emitted", type=event_type, status_code=response.status_code)
        return True

    async def emit(self, event_type: str, payload: dict[str, Any]) -> None:
        """Attempt delivery once, inline or as a detached task; never raises."""
        if not self.detached:
            await self.deliver(event_type, payload)
            return

        task = asyncio.create_task(self.deliver(event_type, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @property
    def pending(self) -> int:
        """Number of detached attempts still running."""
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for detached attempts to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)


# Global emitter instance
_emitter: NotificationEmitter | None = None


def get_notification_emitter() -> NotificationEmitter:
    """Dependency returning the shared emitter configured from settings."""
    global _emitter

    if _emitter is None:
        settings = get_appointment_settings()
        _emitter = NotificationEmitter(
            base_url=settings.notification_service_url,
            source=settings.notification_source,
            timeout_ms=settings.notification_timeout_ms,
            detached=settings.notification_detached,
        )
    return _emitter


async def close_notification_emitter() -> None:
    """Drain detached attempts and drop the shared emitter."""
    global _emitter

    if _emitter is not None:
        await _emitter.drain()
        _emitter = None
