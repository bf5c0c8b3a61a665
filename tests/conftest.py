import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from helpdesk.api.app import create_app
from helpdesk.config import Settings
from helpdesk.db.store import EntityStore
from helpdesk.domain.schemas import TicketCreate, UserCreate
from helpdesk.realtime.hub import BroadcastHub
from helpdesk.services.user_service import create_user


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", seed_demo_data=False, enable_mcp=False)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def store(app) -> EntityStore:
    return app.state.store


@pytest.fixture
def hub(app) -> BroadcastHub:
    return app.state.hub


@pytest.fixture
def users(store):
    agent = create_user(
        store, UserCreate(username="agent1", full_name="Alex Agent", email="alex@example.com", role="agent")
    )
    reporter = create_user(
        store, UserCreate(username="jane", full_name="Jane User", email="jane@example.com", role="user")
    )
    return {"agent": agent, "reporter": reporter}


@pytest.fixture
def ticket_payload(users):
    def make(**overrides):
        data = {
            "title": "Printer on floor 3 is jammed",
            "description": "Paper jam in tray 2",
            "category": "hardware",
            "reportedById": users["reporter"].id,
        }
        data.update(overrides)
        return data

    return make


@pytest.fixture
def new_ticket(users):
    def make(**overrides):
        fields = {
            "title": "Laptop will not boot",
            "category": "hardware",
            "reported_by_id": users["reporter"].id,
        }
        fields.update(overrides)
        return TicketCreate(**fields)

    return make


async def wait_until(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


class FakeConnection:
    """Async-iterable socket stand-in; pushing None ends the stream like a server close."""

    def __init__(self):
        self.queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def push(self, message) -> None:
        if message is not None and not isinstance(message, str):
            message = json.dumps(message)
        self.queue.put_nowait(message)

    def __aiter__(self):
        return self

    async def __anext__(self):
        message = await self.queue.get()
        if message is None:
            raise StopAsyncIteration
        return message

    async def close(self) -> None:
        self.closed = True
        self.queue.put_nowait(None)


class FakeServer:
    def __init__(self, failures: int = 0):
        self.failures = failures
        self.calls = 0
        self.connections: list[FakeConnection] = []

    async def connect(self, url: str) -> FakeConnection:
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionRefusedError("connection refused")
        conn = FakeConnection()
        self.connections.append(conn)
        return conn
