from fastapi import APIRouter, Depends, HTTPException, Query

from helpdesk.api.deps import HubDep, StoreDep
from helpdesk.db.store import EntityStore
from helpdesk.domain.errors import FieldValidationError, NotFoundError
from helpdesk.domain.schemas import (
    ActivityLogRead, AttachmentRead, AttachmentUpload, CommentCreate, CommentRead,
    TicketCreate, TicketFilters, TicketPriority, TicketRead, TicketStatus, TicketUpdate,
)
from helpdesk.realtime.hub import BroadcastHub
from helpdesk.services.activity_service import list_ticket_activity
from helpdesk.services.ticket_service import (
    add_attachments, add_comment, create_ticket, get_ticket, list_attachments, list_comments,
    list_tickets, recent_tickets, update_ticket,
)

router = APIRouter(prefix="/api/tickets", tags=["Tickets"])


@router.get("", response_model=list[TicketRead])
def get_tickets(
    status: TicketStatus | None = None,
    priority: TicketPriority | None = None,
    assigned_to: int | None = Query(default=None, alias="assignedTo"),
    reported_by: int | None = Query(default=None, alias="reportedBy"),
    store: EntityStore = Depends(StoreDep),
):
    filters = TicketFilters(status=status, priority=priority, assigned_to=assigned_to, reported_by=reported_by)
    return list_tickets(store, filters)


@router.get("/recent", response_model=list[TicketRead])
def get_recent_tickets(limit: int = Query(default=5, ge=1, le=100), store: EntityStore = Depends(StoreDep)):
    return recent_tickets(store, limit)


@router.get("/{ticket_id}", response_model=TicketRead)
def get_one_ticket(ticket_id: int, store: EntityStore = Depends(StoreDep)):
    t = get_ticket(store, ticket_id)
    if not t:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return t


@router.post("", response_model=TicketRead, status_code=201)
def post_ticket(
    payload: TicketCreate,
    store: EntityStore = Depends(StoreDep),
    hub: BroadcastHub = Depends(HubDep),
):
    try:
        return create_ticket(store, hub, payload)
    except FieldValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors)


@router.patch("/{ticket_id}", response_model=TicketRead)
def patch_ticket(
    ticket_id: int,
    payload: TicketUpdate,
    store: EntityStore = Depends(StoreDep),
    hub: BroadcastHub = Depends(HubDep),
):
    try:
        return update_ticket(store, hub, ticket_id, payload).ticket
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Ticket not found")
    except FieldValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors)


@router.get("/{ticket_id}/comments", response_model=list[CommentRead])
def get_comments(ticket_id: int, store: EntityStore = Depends(StoreDep)):
    try:
        return list_comments(store, ticket_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Ticket not found")


@router.post("/{ticket_id}/comments", response_model=CommentRead, status_code=201)
def post_comment(
    ticket_id: int,
    payload: CommentCreate,
    store: EntityStore = Depends(StoreDep),
    hub: BroadcastHub = Depends(HubDep),
):
    try:
        return add_comment(store, hub, ticket_id, payload)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Ticket not found")
    except FieldValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors)


@router.get("/{ticket_id}/activity", response_model=list[ActivityLogRead])
def get_activity(ticket_id: int, store: EntityStore = Depends(StoreDep)):
    if not get_ticket(store, ticket_id):
        raise HTTPException(status_code=404, detail="Ticket not found")
    return list_ticket_activity(store, ticket_id)


@router.get("/{ticket_id}/attachments", response_model=list[AttachmentRead])
def get_attachments(ticket_id: int, store: EntityStore = Depends(StoreDep)):
    try:
        return list_attachments(store, ticket_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Ticket not found")


@router.post("/{ticket_id}/attachments", response_model=list[AttachmentRead], status_code=201)
def post_attachments(
    ticket_id: int,
    payload: AttachmentUpload,
    store: EntityStore = Depends(StoreDep),
    hub: BroadcastHub = Depends(HubDep),
):
    try:
        return add_attachments(store, hub, ticket_id, payload.files, payload.user_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Ticket not found")
    except FieldValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors)
