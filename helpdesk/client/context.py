import logging
from typing import Callable

import httpx

from helpdesk.client.cache import QueryCache
from helpdesk.client.events import EventBus, Handler
from helpdesk.client.listener import Connector, UpdateListener, open_websocket
from helpdesk.client.notifications import NotificationCenter, Toast
from helpdesk.config import Settings

logger = logging.getLogger("client_context")


def _log_toast(toast: Toast) -> None:
    logger.info("%s - %s (%s)", toast.title, toast.description, toast.link)


class ClientContext:
    """
    Everything a client UI needs for live updates, built once and passed down.

        async with ClientContext(settings, current_path=lambda: router.path) as ctx:
            ctx.subscribe("ticket-update", on_ticket)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        current_path: Callable[[], str] = lambda: "/",
        show_toast: Callable[[Toast], None] = _log_toast,
        http: httpx.AsyncClient | None = None,
        connector: Connector = open_websocket,
    ):
        settings = settings or Settings()
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(
            base_url=settings.api_url,
            timeout=httpx.Timeout(connect=5.0, read=30.0, write=30.0, pool=5.0),
        )
        self.bus = EventBus()
        self.cache = QueryCache(self.http)
        self.listener = UpdateListener(
            settings.ws_url,
            self.bus,
            connector=connector,
            reconnect_delay=settings.reconnect_delay_seconds,
            max_reconnect_attempts=settings.max_reconnect_attempts,
            connect_timeout=settings.connect_timeout_seconds,
        )
        self.notifications = NotificationCenter(self.cache, current_path, show_toast)

    def subscribe(self, name: str, handler: Handler) -> Callable[[], None]:
        return self.bus.subscribe(name, handler)

    async def connect(self) -> None:
        self.notifications.detach()
        self.notifications.attach(self.bus)
        await self.listener.connect()

    async def disconnect(self) -> None:
        await self.listener.disconnect()
        self.notifications.detach()

    async def aclose(self) -> None:
        await self.disconnect()
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> "ClientContext":
        await self.connect()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()
