import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Union

logger = logging.getLogger("event_bus")

TICKET_UPDATE_EVENT = "ticket-update"
COMMENT_UPDATE_EVENT = "comment-update"


@dataclass(frozen=True)
class UpdateEvent:
    action: str
    data: dict[str, Any]


Handler = Callable[[UpdateEvent], Union[None, Awaitable[None]]]


class EventBus:
    """Publish/subscribe by event name. Handlers may be plain functions or coroutines."""

    def __init__(self):
        self._handlers: dict[str, list[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> Callable[[], None]:
        self._handlers.setdefault(name, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(name, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    async def publish(self, name: str, event: UpdateEvent) -> int:
        delivered = 0
        for handler in list(self._handlers.get(name, [])):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except Exception:
                # One broken subscriber must not starve the others
                logger.exception("handler for %s failed", name)
        return delivered
