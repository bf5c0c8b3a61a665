from typing import Optional, Any

from mcp.server.fastmcp import FastMCP
from pydantic import ValidationError

from helpdesk.db.store import EntityStore
from helpdesk.domain.errors import FieldValidationError, NotFoundError
from helpdesk.domain.schemas import (
    CommentCreate, CommentRead, Level, TicketCreate, TicketFilters, TicketPriority, TicketStatus, TicketUpdate,
)
from helpdesk.domain.ticket_helpers import calculate_priority
from helpdesk.realtime.hub import BroadcastHub
from helpdesk.services import ticket_service
from helpdesk.services.activity_service import list_ticket_activity
from helpdesk.services.ticket_lifecycle import serialize_ticket


class HelpdeskTools:
    """Tool functions exposed over MCP. Mutations are logged and broadcast like REST ones."""

    def __init__(self, store: EntityStore, hub: BroadcastHub):
        self.store = store
        self.hub = hub

    def list_tickets(
        self,
        limit: int = 20,
        offset: int = 0,
        status: Optional[TicketStatus] = None,
        priority: Optional[TicketPriority] = None,
        assigned_to: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """List tickets (filterable)."""
        rows = ticket_service.list_tickets(
            self.store, TicketFilters(status=status, priority=priority, assigned_to=assigned_to)
        )
        return [serialize_ticket(t) for t in rows[offset: offset + limit]]

    def get_ticket(self, ticket_id: int) -> dict[str, Any]:
        """Fetch one ticket by id."""
        t = ticket_service.get_ticket(self.store, ticket_id)
        if not t:
            return {"error": "Ticket not found", "ticket_id": ticket_id}
        return serialize_ticket(t)

    def get_ticket_by_number(self, ticket_number: str) -> dict[str, Any]:
        """Fetch one ticket by its number, e.g. TKT-0042."""
        t = ticket_service.get_ticket_by_number(self.store, ticket_number.strip().upper())
        if not t:
            return {"error": "Ticket not found", "ticket_number": ticket_number}
        return serialize_ticket(t)

    def create_ticket(
        self,
        title: str,
        category: str,
        reported_by_id: int,
        description: Optional[str] = None,
        impact: Optional[Level] = None,
        urgency: Optional[Level] = None,
        priority: Optional[TicketPriority] = None,
        assigned_to_id: Optional[int] = None,
    ) -> dict[str, Any]:
        """Create a ticket. Without an explicit priority it is derived from impact x urgency."""
        if priority is None:
            priority = TicketPriority(
                calculate_priority(impact.value if impact else None, urgency.value if urgency else None)
            )
        try:
            payload = TicketCreate(
                title=title,
                description=description,
                category=category,
                impact=impact,
                urgency=urgency,
                priority=priority,
                assigned_to_id=assigned_to_id,
                reported_by_id=reported_by_id,
            )
        except ValidationError as e:
            return {"error": "Invalid ticket", "errors": e.errors(include_url=False)}
        try:
            t = ticket_service.create_ticket(self.store, self.hub, payload)
        except FieldValidationError as e:
            return {"error": str(e), "errors": e.errors}
        return serialize_ticket(t)

    def update_ticket(
        self,
        ticket_id: int,
        status: Optional[TicketStatus] = None,
        priority: Optional[TicketPriority] = None,
        assigned_to_id: Optional[int] = None,
        updated_by_id: Optional[int] = None,
    ) -> dict[str, Any]:
        """Update a ticket (simple patch)."""
        patch = {
            k: v for k, v in {
                "status": status,
                "priority": priority,
                "assigned_to_id": assigned_to_id,
                "updated_by_id": updated_by_id,
            }.items()
            if v is not None
        }
        try:
            change = ticket_service.update_ticket(self.store, self.hub, ticket_id, TicketUpdate(**patch))
        except NotFoundError:
            return {"error": "Ticket not found", "ticket_id": ticket_id}
        except FieldValidationError as e:
            return {"error": str(e), "errors": e.errors}
        return {"ticket": serialize_ticket(change.ticket), "changes": change.changes}

    def add_comment(self, ticket_id: int, user_id: int, content: str, is_internal: bool = False) -> dict[str, Any]:
        """Add a comment to the ticket thread."""
        try:
            c = ticket_service.add_comment(
                self.store, self.hub, ticket_id,
                CommentCreate(user_id=user_id, content=content, is_internal=is_internal),
            )
        except NotFoundError:
            return {"error": "Ticket not found", "ticket_id": ticket_id}
        except FieldValidationError as e:
            return {"error": str(e), "errors": e.errors}
        return CommentRead.model_validate(c).to_json()

    def ticket_activity(self, ticket_id: int) -> list[dict[str, Any]]:
        """Ticket activity, newest first."""
        return [
            {"action": log.action, "userId": log.user_id, "details": log.details,
             "createdAt": log.created_at.isoformat()}
            for log in list_ticket_activity(self.store, ticket_id)
        ]


def build_mcp(store: EntityStore, hub: BroadcastHub) -> FastMCP:
    # Streamable HTTP + stateless + JSON response (scalable)
    mcp = FastMCP(
        name="Helpdesk",
        stateless_http=True,
        json_response=True,
        instructions=(
            "MCP server exposing helpdesk tickets: read, create, update, "
            "comments and activity history."
        ),
    )
    mcp.settings.streamable_http_path = "/"

    tools = HelpdeskTools(store, hub)
    for fn in (
        tools.list_tickets,
        tools.get_ticket,
        tools.get_ticket_by_number,
        tools.create_ticket,
        tools.update_ticket,
        tools.add_comment,
        tools.ticket_activity,
    ):
        mcp.tool()(fn)
    return mcp
