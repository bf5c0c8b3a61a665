import logging

from helpdesk.db.store import EntityStore
from helpdesk.domain.errors import FieldValidationError, NotFoundError
from helpdesk.domain.models import Attachment, Comment, Ticket, User
from helpdesk.domain.schemas import (
    CommentCreate, CommentRead, TicketCreate, TicketFilters, TicketUpdate, UploadedFile,
)
from helpdesk.realtime.hub import BroadcastHub
from helpdesk.services.activity_service import record_activity
from helpdesk.services.ticket_lifecycle import TicketChange, apply_update, create_ticket as _create, serialize_ticket

logger = logging.getLogger("ticket_service")

# Attachments are not really stored, they only get a path
UPLOAD_ROOT = "/uploads"


def _require_ticket(store: EntityStore, ticket_id: int) -> Ticket:
    ticket = store.get(Ticket, ticket_id)
    if ticket is None:
        raise NotFoundError("Ticket", ticket_id)
    return ticket


def create_ticket(store: EntityStore, hub: BroadcastHub, payload: TicketCreate) -> Ticket:
    ticket = _create(store, payload)
    data = serialize_ticket(ticket)

    record_activity(store, ticket.id, ticket.reported_by_id, "created", {"ticket": data})
    hub.ticket_update("create", data)

    logger.info("created %s (id=%s)", ticket.ticket_number, ticket.id)
    return ticket


def update_ticket(store: EntityStore, hub: BroadcastHub, ticket_id: int, payload: TicketUpdate) -> TicketChange:
    fields = payload.model_dump(mode="json", exclude_unset=True, exclude={"updated_by_id"})
    actor_id = payload.updated_by_id
    if actor_id is not None and store.get(User, actor_id) is None:
        raise FieldValidationError.single("updatedById", f"User {actor_id} does not exist")

    change = apply_update(store, ticket_id, fields)
    ticket = change.ticket

    record_activity(store, ticket.id, actor_id or ticket.reported_by_id, "updated", change.changes)
    hub.ticket_update("update", serialize_ticket(ticket))

    logger.info("updated %s fields=%s", ticket.ticket_number, sorted(change.changes))
    return change


def get_ticket(store: EntityStore, ticket_id: int) -> Ticket | None:
    return store.get(Ticket, ticket_id)


def get_ticket_by_number(store: EntityStore, ticket_number: str) -> Ticket | None:
    return store.find_one(Ticket, Ticket.ticket_number == ticket_number)


def list_tickets(store: EntityStore, filters: TicketFilters | None = None) -> list[Ticket]:
    """All tickets matching every supplied filter, in creation order."""
    filters = filters or TicketFilters()
    where = []
    if filters.status is not None:
        where.append(Ticket.status == filters.status.value)
    if filters.priority is not None:
        where.append(Ticket.priority == filters.priority.value)
    if filters.assigned_to is not None:
        where.append(Ticket.assigned_to_id == filters.assigned_to)
    if filters.reported_by is not None:
        where.append(Ticket.reported_by_id == filters.reported_by)
    return store.list(Ticket, *where)


def recent_tickets(store: EntityStore, limit: int = 5) -> list[Ticket]:
    # Newest first, same-instant tickets in insertion order
    return store.list(Ticket, order_by=(Ticket.created_at.desc(), Ticket.id.asc()), limit=limit)


def add_comment(store: EntityStore, hub: BroadcastHub, ticket_id: int, payload: CommentCreate) -> Comment:
    _require_ticket(store, ticket_id)
    if store.get(User, payload.user_id) is None:
        raise FieldValidationError.single("userId", f"User {payload.user_id} does not exist")

    comment = store.create(Comment, ticket_id=ticket_id, **payload.model_dump())

    record_activity(store, ticket_id, comment.user_id, "commented", {"comment": comment.content})
    hub.comment_update("create", CommentRead.model_validate(comment).to_json())
    return comment


def list_comments(store: EntityStore, ticket_id: int) -> list[Comment]:
    _require_ticket(store, ticket_id)
    return store.list(
        Comment,
        Comment.ticket_id == ticket_id,
        order_by=(Comment.created_at.asc(), Comment.id.asc()),
    )


def add_attachments(
    store: EntityStore,
    hub: BroadcastHub,
    ticket_id: int,
    files: list[UploadedFile] | None,
    user_id: int | None = None,
) -> list[Attachment]:
    if not files:
        raise FieldValidationError.single("files", "No files provided")
    _require_ticket(store, ticket_id)

    # No login: uploads default to the first user
    uploader = user_id if user_id is not None else 1
    if store.get(User, uploader) is None:
        raise FieldValidationError.single("userId", f"User {uploader} does not exist")

    result = []
    for f in files:
        attachment = store.create(
            Attachment,
            ticket_id=ticket_id,
            filename=f.name,
            file_type=f.type,
            file_size=f.size,
            path=f"{UPLOAD_ROOT}/{f.name}",
            uploaded_by_id=uploader,
        )
        result.append(attachment)
        record_activity(store, ticket_id, uploader, "attached_file", {"filename": f.name})

    hub.ticket_update("update", serialize_ticket(_require_ticket(store, ticket_id)))
    logger.info("ticket_id=%s %s attachment(s)", ticket_id, len(result))
    return result


def list_attachments(store: EntityStore, ticket_id: int) -> list[Attachment]:
    _require_ticket(store, ticket_id)
    return store.list(Attachment, Attachment.ticket_id == ticket_id)
