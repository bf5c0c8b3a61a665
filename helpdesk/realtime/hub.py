"""
In-process fan-out of ticket and comment mutations to WebSocket clients.

Delivery is best effort and at most once: every open connection gets its own
bounded queue drained by a writer task. `broadcast` only enqueues, so a slow
client fills its own queue and then misses messages without holding up the
others. Nothing is kept for clients that connect later.
"""
import asyncio
import json
import logging
import threading
from typing import Any, Awaitable, Callable

from helpdesk.domain.schemas import RealtimeMessage

logger = logging.getLogger("broadcast_hub")

TICKET_UPDATE = "ticket_update"
COMMENT_UPDATE = "comment_update"


class HubConnection:
    def __init__(self, send: Callable[[str], Awaitable[None]], queue_size: int = 100, name: str = ""):
        self._send = send
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self.name = name
        self.dropped = 0

    def offer(self, message: str) -> None:
        # Safe from any thread: the queue is only touched on its own loop
        try:
            self._loop.call_soon_threadsafe(self._enqueue, message)
        except RuntimeError:
            # loop already closed, the connection is going away
            self.dropped += 1

    def _enqueue(self, message: str) -> None:
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning("send queue full for %s, dropped message (%s so far)", self.name, self.dropped)

    async def pump(self) -> None:
        """Writer loop: send queued messages until cancelled or the socket fails."""
        while True:
            message = await self._queue.get()
            try:
                await self._send(message)
            except Exception as e:
                # The reader side notices the dead socket and unregisters us
                logger.warning("send to %s failed, stopping writer: %s", self.name, e)
                return


class BroadcastHub:
    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._connections: set[HubConnection] = set()
        self._lock = threading.Lock()

    @property
    def connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def register(self, send: Callable[[str], Awaitable[None]], name: str = "") -> HubConnection:
        conn = HubConnection(send, queue_size=self.queue_size, name=name)
        with self._lock:
            self._connections.add(conn)
            total = len(self._connections)
        logger.info("WebSocket client connected (%s), %s open", name, total)
        return conn

    def unregister(self, conn: HubConnection) -> None:
        with self._lock:
            self._connections.discard(conn)
            total = len(self._connections)
        logger.info("WebSocket client disconnected (%s), %s open", conn.name, total)

    def broadcast(self, type_: str, action: str, data: dict[str, Any]) -> int:
        """Queue one envelope for every open connection; returns how many were offered it."""
        envelope = RealtimeMessage(type=type_, action=action, data=data)
        message = json.dumps(envelope.model_dump(mode="json"))

        with self._lock:
            targets = list(self._connections)

        for conn in targets:
            conn.offer(message)
        logger.debug("broadcast %s/%s to %s client(s)", type_, action, len(targets))
        return len(targets)

    def ticket_update(self, action: str, ticket: dict[str, Any]) -> int:
        return self.broadcast(TICKET_UPDATE, action, ticket)

    def comment_update(self, action: str, comment: dict[str, Any]) -> int:
        return self.broadcast(COMMENT_UPDATE, action, comment)
