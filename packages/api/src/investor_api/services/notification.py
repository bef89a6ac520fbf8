# This project was developed with assistance from AI tools.
"""Best-effort notification delivery.

The transition engine publishes events to an in-process outbox; a background
task started at app startup drains the outbox and POSTs each event to the
configured endpoint. Delivery is advisory: failures are logged, never
retried, and never reach the code that produced the event.

The module exposes singletons initialised at app startup via
``init_notification_service()``.
"""

import asyncio
import logging

import httpx

from ..core.config import Settings
from ..schemas.notification import NotificationEvent
from .errors import NotificationFailure

logger = logging.getLogger(__name__)


class NotificationOutbox:
    """Bounded queue between the transition engine and the dispatcher."""

    def __init__(self, maxsize: int = 1000):
        self._queue: asyncio.Queue[NotificationEvent] = asyncio.Queue(maxsize=maxsize)

    def publish(self, event: NotificationEvent) -> bool:
        """Enqueue ``event``. Returns False (and logs) if the outbox is full."""
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                "Notification outbox full; dropping %s for application %s",
                event.notification_type,
                event.application_id,
            )
            return False
        return True

    async def get(self) -> NotificationEvent:
        return await self._queue.get()

    def task_done(self) -> None:
        self._queue.task_done()

    def pending(self) -> list[NotificationEvent]:
        """Remove and return every queued event without waiting."""
        events = []
        while not self._queue.empty():
            events.append(self._queue.get_nowait())
            self._queue.task_done()
        return events

    def qsize(self) -> int:
        return self._queue.qsize()


class NotificationDispatcher:
    """POSTs ``{applicationId, notificationType, message}`` to one endpoint."""

    def __init__(
        self,
        endpoint: str | None,
        *,
        api_key: str | None = None,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.endpoint = endpoint
        self._headers = {"Content-Type": "application/json"}
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def enabled(self) -> bool:
        return bool(self.endpoint)

    async def fire(self, event: NotificationEvent) -> bool:
        """Attempt delivery once. Returns True if the endpoint accepted the event."""
        if not self.enabled:
            logger.info(
                "No notification endpoint; dropping %s for application %s",
                event.notification_type,
                event.application_id,
            )
            return False
        try:
            await self._deliver(event)
        except NotificationFailure as exc:
            logger.error(
                "Notification %s for application %s not delivered: %s",
                event.notification_type,
                event.application_id,
                exc,
            )
            return False
        logger.info(
            "Delivered %s notification for application %s (%s)",
            event.notification_type,
            event.application_id,
            event.audience.value,
        )
        return True

    async def _deliver(self, event: NotificationEvent) -> None:
        try:
            response = await self._client.post(
                self.endpoint, json=event.to_payload(), headers=self._headers
            )
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NotificationFailure(str(exc) or exc.__class__.__name__) from exc

    async def aclose(self) -> None:
        await self._client.aclose()


async def run_dispatcher(outbox: NotificationOutbox, dispatcher: NotificationDispatcher) -> None:
    """Deliver outbox events until cancelled."""
    while True:
        event = await outbox.get()
        try:
            await dispatcher.fire(event)
        except Exception:
            # Keep the loop alive; one bad event must not stop later deliveries.
            logger.exception("Unexpected error dispatching %s", event.notification_type)
        finally:
            outbox.task_done()


# ---------------------------------------------------------------------------
# Singletons
# ---------------------------------------------------------------------------

_outbox: NotificationOutbox | None = None
_dispatcher: NotificationDispatcher | None = None


def init_notification_service(cfg: Settings) -> None:
    """Create the outbox and dispatcher singletons from settings."""
    global _outbox, _dispatcher  # noqa: PLW0603
    _outbox = NotificationOutbox(maxsize=cfg.NOTIFICATION_QUEUE_SIZE)
    _dispatcher = NotificationDispatcher(
        cfg.NOTIFICATION_ENDPOINT,
        api_key=cfg.NOTIFICATION_API_KEY,
        timeout=cfg.NOTIFICATION_TIMEOUT_SECONDS,
    )
    if _dispatcher.enabled:
        logger.info("Notifications: delivering to %s", cfg.NOTIFICATION_ENDPOINT)
    else:
        logger.warning("Notifications: NOTIFICATION_ENDPOINT not set, events will be dropped")


def get_notification_outbox() -> NotificationOutbox:
    """Return the outbox singleton. Raises if not initialised."""
    if _outbox is None:
        raise RuntimeError("Notification service not initialised -- call init_notification_service() first")
    return _outbox


def get_notification_dispatcher() -> NotificationDispatcher:
    if _dispatcher is None:
        raise RuntimeError("Notification service not initialised -- call init_notification_service() first")
    return _dispatcher
