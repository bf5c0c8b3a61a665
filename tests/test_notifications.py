import httpx
import pytest

from helpdesk.client.cache import QueryCache
from helpdesk.client.context import ClientContext
from helpdesk.client.events import COMMENT_UPDATE_EVENT, TICKET_UPDATE_EVENT, EventBus, UpdateEvent
from helpdesk.client.notifications import NotificationCenter
from helpdesk.config import Settings
from tests.conftest import FakeServer, wait_until

TICKET = {
    "id": 7,
    "ticketNumber": "TKT-0007",
    "title": "Outlook keeps asking for my password every hour since the update",
}


def _api(handler=None):
    def default(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/tickets/7":
            return httpx.Response(200, json=TICKET)
        return httpx.Response(404, json={"detail": "Ticket not found"})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler or default), base_url="http://helpdesk.test")


class Page:
    def __init__(self, path="/"):
        self.path = path
        self.toasts = []


def _center(http, page: Page):
    cache = QueryCache(http)
    center = NotificationCenter(cache, lambda: page.path, page.toasts.append)
    bus = EventBus()
    center.attach(bus)
    return bus, cache, center


def _warm(cache: QueryCache, *keys):
    for key in keys:
        cache.set(key, {"cached": key})


@pytest.mark.anyio
async def test_new_ticket_always_toasts():
    page = Page("/tickets/7")
    async with _api() as http:
        bus, cache, _ = _center(http, page)
        _warm(cache, "/api/tickets", "/api/tickets/recent?limit=5", "/api/dashboard/metrics")

        await bus.publish(TICKET_UPDATE_EVENT, UpdateEvent("create", TICKET))

    assert [t.title for t in page.toasts] == ["New Ticket Created"]
    toast = page.toasts[0]
    assert toast.description == "TKT-0007: Outlook keeps asking for my password every hour si..."
    assert toast.link == "/tickets/7"
    assert toast.duration_ms == 5000
    assert cache.is_stale("/api/tickets")
    assert cache.is_stale("/api/tickets/recent?limit=5")
    assert cache.is_stale("/api/dashboard/metrics")


@pytest.mark.anyio
async def test_update_toasts_elsewhere():
    page = Page("/tickets")
    async with _api() as http:
        bus, cache, _ = _center(http, page)
        _warm(cache, "/api/tickets/7", "/api/tickets/8")

        await bus.publish(TICKET_UPDATE_EVENT, UpdateEvent("update", TICKET))

    assert [t.title for t in page.toasts] == ["Ticket Updated"]
    assert cache.is_stale("/api/tickets/7")
    assert not cache.is_stale("/api/tickets/8")


@pytest.mark.anyio
async def test_update_is_silent_on_the_ticket_page():
    page = Page("/tickets/7")
    async with _api() as http:
        bus, cache, _ = _center(http, page)
        _warm(cache, "/api/tickets/7", "/api/tickets")

        await bus.publish(TICKET_UPDATE_EVENT, UpdateEvent("update", TICKET))

    assert page.toasts == []
    # The open page still picks up the change
    assert cache.is_stale("/api/tickets/7")
    assert cache.is_stale("/api/tickets")


@pytest.mark.anyio
async def test_comment_fetches_ticket_then_toasts():
    page = Page("/")
    async with _api() as http:
        bus, cache, _ = _center(http, page)
        _warm(cache, "/api/tickets/7/comments")

        await bus.publish(COMMENT_UPDATE_EVENT, UpdateEvent("create", {"id": 3, "ticketId": 7}))

    assert cache.is_stale("/api/tickets/7/comments")
    assert cache.get("/api/tickets/7") == TICKET
    assert [t.title for t in page.toasts] == ["New Comment"]
    assert page.toasts[0].description.startswith("TKT-0007: ")


@pytest.mark.anyio
async def test_comment_is_silent_on_the_ticket_page():
    page = Page("/tickets/7")
    async with _api() as http:
        bus, cache, _ = _center(http, page)
        await bus.publish(COMMENT_UPDATE_EVENT, UpdateEvent("create", {"id": 3, "ticketId": 7}))

    assert page.toasts == []


@pytest.mark.anyio
async def test_comment_uses_cached_ticket():
    requests = []

    def handler(request):
        requests.append(request.url.path)
        return httpx.Response(500)

    page = Page("/")
    async with _api(handler) as http:
        bus, cache, _ = _center(http, page)
        cache.set("/api/tickets/7", TICKET)
        await bus.publish(COMMENT_UPDATE_EVENT, UpdateEvent("create", {"id": 3, "ticketId": 7}))

    assert requests == []
    assert [t.title for t in page.toasts] == ["New Comment"]


@pytest.mark.anyio
async def test_comment_for_unloadable_ticket_has_no_toast():
    page = Page("/")
    async with _api() as http:
        bus, _, _ = _center(http, page)
        delivered = await bus.publish(COMMENT_UPDATE_EVENT, UpdateEvent("create", {"id": 3, "ticketId": 99}))

    assert delivered == 1
    assert page.toasts == []


@pytest.mark.anyio
async def test_detach_stops_notifications():
    page = Page("/")
    async with _api() as http:
        bus, _, center = _center(http, page)
        center.detach()
        await bus.publish(TICKET_UPDATE_EVENT, UpdateEvent("create", TICKET))

    assert page.toasts == []


@pytest.mark.anyio
async def test_client_context_end_to_end():
    server = FakeServer()
    page = Page("/")
    updates = []
    settings = Settings(api_url="http://helpdesk.test", reconnect_delay_seconds=0.01)

    async with _api() as http:
        ctx = ClientContext(
            settings, current_path=lambda: page.path, show_toast=page.toasts.append,
            http=http, connector=server.connect,
        )
        async with ctx:
            ctx.subscribe(TICKET_UPDATE_EVENT, updates.append)
            ctx.cache.set("/api/tickets", [])

            server.connections[0].push({"type": "ticket_update", "action": "create", "data": TICKET})
            server.connections[0].push({"type": "comment_update", "action": "create", "data": {"ticketId": 7}})
            await wait_until(lambda: len(page.toasts) == 2)

        assert not http.is_closed

    assert [u.action for u in updates] == ["create"]
    assert [t.title for t in page.toasts] == ["New Ticket Created", "New Comment"]
    assert ctx.cache.is_stale("/api/tickets")
    assert ctx.listener.state.value == "disconnected"
