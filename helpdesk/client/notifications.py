import logging
from dataclasses import dataclass
from typing import Callable

import httpx

from helpdesk.client.cache import QueryCache
from helpdesk.client.events import COMMENT_UPDATE_EVENT, TICKET_UPDATE_EVENT, EventBus, UpdateEvent
from helpdesk.domain.ticket_helpers import generate_ticket_preview

logger = logging.getLogger("notifications")

TOAST_DURATION_MS = 5000

# Ticket lists and counters that change whenever any ticket does
TICKET_LIST_QUERIES = ("/api/tickets", "/api/tickets/recent", "/api/dashboard/metrics")


@dataclass(frozen=True)
class Toast:
    title: str
    description: str
    link: str
    duration_ms: int = TOAST_DURATION_MS


def ticket_path(ticket_id) -> str:
    return f"/tickets/{ticket_id}"


class NotificationCenter:
    """
    Turns update events into cache invalidations and toasts.

    No toast is raised for a ticket whose detail page is currently open
    (`current_path()` returns `/tickets/{id}`): that page refreshes itself
    from the invalidated cache.
    """

    def __init__(self, cache: QueryCache, current_path: Callable[[], str], show_toast: Callable[[Toast], None]):
        self.cache = cache
        self.current_path = current_path
        self.show_toast = show_toast
        self._unsubscribe: list[Callable[[], None]] = []

    def attach(self, bus: EventBus) -> None:
        self._unsubscribe.append(bus.subscribe(TICKET_UPDATE_EVENT, self.on_ticket_update))
        self._unsubscribe.append(bus.subscribe(COMMENT_UPDATE_EVENT, self.on_comment_update))

    def detach(self) -> None:
        while self._unsubscribe:
            self._unsubscribe.pop()()

    def _viewing(self, ticket_id) -> bool:
        return self.current_path() == ticket_path(ticket_id)

    def _toast(self, title: str, ticket: dict) -> None:
        self.show_toast(
            Toast(
                title=title,
                description=f"{ticket.get('ticketNumber')}: {generate_ticket_preview(ticket.get('title', ''))}",
                link=ticket_path(ticket.get("id")),
            )
        )

    def on_ticket_update(self, event: UpdateEvent) -> None:
        ticket = event.data
        ticket_id = ticket.get("id")

        if event.action == "create":
            self._toast("New Ticket Created", ticket)
        elif event.action == "update":
            if not self._viewing(ticket_id):
                self._toast("Ticket Updated", ticket)
            self.cache.invalidate(f"/api/tickets/{ticket_id}")
        else:
            logger.debug("ignoring ticket action %r", event.action)
            return

        for query in TICKET_LIST_QUERIES:
            self.cache.invalidate(query)

    async def on_comment_update(self, event: UpdateEvent) -> None:
        ticket_id = event.data.get("ticketId")
        self.cache.invalidate(f"/api/tickets/{ticket_id}/comments")

        try:
            ticket = await self.cache.fetch_query(f"/api/tickets/{ticket_id}")
        except httpx.HTTPError as e:
            logger.warning("could not load ticket %s for comment notification: %s", ticket_id, e)
            return

        if ticket and not self._viewing(ticket_id):
            self._toast("New Comment", ticket)
