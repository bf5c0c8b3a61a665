"""
Ticket lifecycle: creation, status transitions and change tracking.

There is no transition table, any status can follow any other. Moving into
`resolved` (or `closed`) stamps `resolved_at` (or `closed_at`) with the time of
the move, including when the ticket re-enters the status later. Leaving the
status never clears the stamp.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from helpdesk.db.store import EntityStore
from helpdesk.domain.errors import FieldValidationError, NotFoundError, reject_nulls
from helpdesk.domain.models import Ticket, User, utcnow
from helpdesk.domain.schemas import TicketCreate, TicketRead

# Refreshed on every mutation, so it would show up in every diff
UNTRACKED_FIELDS = frozenset({"updatedAt"})

READ_ONLY_FIELDS = frozenset({"id", "ticket_number", "created_at", "updated_at", "resolved_at", "closed_at"})

# Columns that can be changed but never emptied; assigned_to_id = None unassigns
REQUIRED_FIELDS = frozenset({"title", "status", "priority", "category"})


@dataclass
class TicketChange:
    ticket: Ticket
    before: dict[str, Any]
    changes: dict[str, dict[str, Any]]


def format_ticket_number(ticket_id: int) -> str:
    return f"TKT-{ticket_id:04d}"


def serialize_ticket(ticket: Ticket) -> dict[str, Any]:
    return TicketRead.model_validate(ticket).to_json()


def compute_changes(
    before: dict[str, Any],
    after: dict[str, Any],
    ignore: frozenset[str] = UNTRACKED_FIELDS,
) -> dict[str, dict[str, Any]]:
    """Field-level diff of two serialized tickets: {field: {"from": old, "to": new}}."""
    changes = {}
    for key, new in after.items():
        if key in ignore:
            continue
        old = before.get(key)
        if old != new:
            changes[key] = {"from": old, "to": new}
    return changes


def status_timestamps(previous_status: str, new_status: str, now: datetime) -> dict[str, datetime]:
    stamps = {}
    if new_status == "resolved" and previous_status != "resolved":
        stamps["resolved_at"] = now
    if new_status == "closed" and previous_status != "closed":
        stamps["closed_at"] = now
    return stamps


def _require_user(store: EntityStore, user_id: int, field: str) -> None:
    if store.get(User, user_id) is None:
        raise FieldValidationError.single(field, f"User {user_id} does not exist")


def create_ticket(store: EntityStore, payload: TicketCreate) -> Ticket:
    _require_user(store, payload.reported_by_id, "reportedById")
    if payload.assigned_to_id is not None:
        _require_user(store, payload.assigned_to_id, "assignedToId")

    def assign_number(ticket: Ticket) -> None:
        ticket.ticket_number = format_ticket_number(ticket.id)

    now = utcnow()
    return store.create(
        Ticket,
        on_insert=assign_number,
        created_at=now,
        updated_at=now,
        resolved_at=None,
        closed_at=None,
        **payload.model_dump(mode="json"),
    )


def apply_update(store: EntityStore, ticket_id: int, changes: dict[str, Any]) -> TicketChange:
    """
    Merge `changes` (snake_case field -> plain value) into the ticket.

    Runs under the store lock, so the diff is taken against the state the
    update was applied to.
    """
    forbidden = sorted(READ_ONLY_FIELDS.intersection(changes))
    if forbidden:
        raise FieldValidationError([{"field": f, "message": "Field is read-only"} for f in forbidden])
    reject_nulls(changes, REQUIRED_FIELDS)

    with store.lock:
        current = store.get(Ticket, ticket_id)
        if current is None:
            raise NotFoundError("Ticket", ticket_id)

        if changes.get("assigned_to_id") is not None:
            _require_user(store, changes["assigned_to_id"], "assignedToId")

        before = serialize_ticket(current)

        now = utcnow()
        fields = dict(changes)
        fields["updated_at"] = now
        fields.update(status_timestamps(current.status, fields.get("status", current.status), now))

        updated = store.update(Ticket, ticket_id, **fields)
        return TicketChange(
            ticket=updated,
            before=before,
            changes=compute_changes(before, serialize_ticket(updated)),
        )
