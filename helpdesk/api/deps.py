from fastapi import Request

from helpdesk.db.store import EntityStore
from helpdesk.realtime.hub import BroadcastHub


def StoreDep(request: Request) -> EntityStore:
    return request.app.state.store


def HubDep(request: Request) -> BroadcastHub:
    return request.app.state.hub
