"""
Client side of the real-time channel.

One `UpdateListener` keeps at most one WebSocket open to the server's `/ws`
endpoint. Messages are validated and republished on an `EventBus` as
`ticket-update` / `comment-update` events. A dropped connection is retried
every `reconnect_delay` seconds, `max_reconnect_attempts` times in a row;
after that the listener stays disconnected without raising. Callers must
treat the channel as a shortcut over refetching, never as guaranteed
delivery.
"""
import json
import asyncio
import logging
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Protocol, Union

from pydantic import ValidationError
from websockets.asyncio.client import connect as ws_connect

from helpdesk.client.events import COMMENT_UPDATE_EVENT, TICKET_UPDATE_EVENT, EventBus, UpdateEvent
from helpdesk.domain.schemas import RealtimeMessage

logger = logging.getLogger("update_listener")

EVENT_NAMES = {
    "ticket_update": TICKET_UPDATE_EVENT,
    "comment_update": COMMENT_UPDATE_EVENT,
}


class Connection(Protocol):
    def __aiter__(self) -> AsyncIterator[Union[str, bytes]]: ...

    async def close(self) -> None: ...


Connector = Callable[[str], Awaitable[Connection]]


async def open_websocket(url: str) -> Connection:
    # The listener applies its own connect timeout
    return await ws_connect(url, open_timeout=None)


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"


class UpdateListener:
    def __init__(
        self,
        url: str,
        bus: EventBus,
        connector: Connector = open_websocket,
        reconnect_delay: float = 3.0,
        max_reconnect_attempts: int = 5,
        connect_timeout: float = 10.0,
    ):
        self.url = url
        self.bus = bus
        self._connector = connector
        self.reconnect_delay = reconnect_delay
        self.max_reconnect_attempts = max_reconnect_attempts
        self.connect_timeout = connect_timeout

        self.state = ConnectionState.DISCONNECTED
        self.reconnect_attempts = 0
        self.gave_up = False

        self._conn: Connection | None = None
        self._reader: asyncio.Task | None = None
        self._reconnect_task: asyncio.Task | None = None
        self._closing = False
        # Bumped by disconnect() so an in-flight connect knows it was abandoned
        self._generation = 0

    async def connect(self) -> None:
        if self.state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            return

        self._closing = False
        self.gave_up = False
        self._cancel_reconnect()
        self.state = ConnectionState.CONNECTING
        generation = self._generation

        try:
            conn = await asyncio.wait_for(self._connector(self.url), timeout=self.connect_timeout)
        except Exception as e:
            logger.error("WebSocket connection error: %s", str(e) or type(e).__name__)
            if generation == self._generation:
                self.state = ConnectionState.DISCONNECTED
                self._schedule_reconnect()
            return

        if generation != self._generation:
            # disconnect() was called while the handshake was in flight
            await conn.close()
            return

        self._conn = conn
        self.state = ConnectionState.CONNECTED
        self.reconnect_attempts = 0
        logger.info("WebSocket connection established (%s)", self.url)
        self._reader = asyncio.create_task(self._read(conn))

    async def disconnect(self) -> None:
        """Close the connection and stop reconnecting. Safe to call at any time, any number of times."""
        self._closing = True
        self._generation += 1
        self._cancel_reconnect()

        reader, self._reader = self._reader, None
        conn, self._conn = self._conn, None

        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
            await asyncio.wait([reader])
        if conn is not None:
            try:
                await conn.close()
            except Exception as e:
                logger.warning("error while closing WebSocket: %s", e)

        self.state = ConnectionState.DISCONNECTED

    async def _read(self, conn: Connection) -> None:
        try:
            async for raw in conn:
                await self._handle_raw(raw)
        except Exception as e:
            logger.error("WebSocket error: %s", e)

        if self._closing or self._conn is not conn:
            return
        logger.info("WebSocket connection closed")
        self._conn = None
        self._reader = None
        self.state = ConnectionState.DISCONNECTED
        self._schedule_reconnect()

    async def _handle_raw(self, raw: Union[str, bytes]) -> None:
        try:
            payload: Any = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("Error parsing WebSocket message: %s", e)
            return

        kind = payload.get("type") if isinstance(payload, dict) else None
        if kind not in EVENT_NAMES:
            logger.debug("ignoring message of type %r", kind)
            return

        try:
            message = RealtimeMessage.model_validate(payload)
        except ValidationError as e:
            logger.error("Invalid %s message: %s", kind, e)
            return

        await self.bus.publish(EVENT_NAMES[message.type], UpdateEvent(message.action, message.data))

    def _schedule_reconnect(self) -> None:
        if self._closing:
            return
        if self.reconnect_attempts >= self.max_reconnect_attempts:
            logger.info("Max reconnect attempts reached. Giving up.")
            self.gave_up = True
            self.state = ConnectionState.DISCONNECTED
            return

        self._cancel_reconnect()
        self.reconnect_attempts += 1
        logger.info("Attempting to reconnect (%s/%s)...", self.reconnect_attempts, self.max_reconnect_attempts)
        self.state = ConnectionState.RECONNECTING
        self._reconnect_task = asyncio.create_task(self._reconnect_later())

    async def _reconnect_later(self) -> None:
        await asyncio.sleep(self.reconnect_delay)
        # Cleared first so connect() does not cancel the task it runs in
        self._reconnect_task = None
        await self.connect()

    def _cancel_reconnect(self) -> None:
        task, self._reconnect_task = self._reconnect_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
