import logging
from typing import Any

from pydantic import ValidationError

from helpdesk.db.store import EntityStore
from helpdesk.domain.errors import FieldValidationError, NotFoundError
from helpdesk.domain.models import ActivityLog, Ticket, User
from helpdesk.domain.schemas import ACTIVITY_DETAILS

logger = logging.getLogger("activity_log")


def record_activity(
    store: EntityStore,
    ticket_id: int,
    user_id: int,
    action: str,
    details: dict[str, Any],
) -> ActivityLog:
    adapter = ACTIVITY_DETAILS.get(action)
    if adapter is None:
        raise FieldValidationError.single("action", f"Unknown activity action {action!r}")

    if store.get(Ticket, ticket_id) is None:
        raise NotFoundError("Ticket", ticket_id)
    if store.get(User, user_id) is None:
        raise FieldValidationError.single("userId", f"User {user_id} does not exist")

    try:
        parsed = adapter.validate_python(details)
    except ValidationError as e:
        raise FieldValidationError(
            [{"field": "details." + ".".join(str(p) for p in err["loc"]), "message": err["msg"]} for err in e.errors()]
        ) from e

    log = store.create(
        ActivityLog,
        ticket_id=ticket_id,
        user_id=user_id,
        action=action,
        details=adapter.dump_python(parsed, mode="json", by_alias=True),
    )
    logger.info("ticket_id=%s action=%s user_id=%s", ticket_id, action, user_id)
    return log


def list_ticket_activity(store: EntityStore, ticket_id: int) -> list[ActivityLog]:
    # Newest first; logs written in the same instant keep their write order reversed
    return store.list(
        ActivityLog,
        ActivityLog.ticket_id == ticket_id,
        order_by=(ActivityLog.created_at.desc(), ActivityLog.id.desc()),
    )
