import pytest

from helpdesk.domain.schemas import Level, TicketPriority, TicketStatus
from helpdesk.mcp.server import HelpdeskTools, build_mcp


@pytest.fixture
def tools(store, hub):
    return HelpdeskTools(store, hub)


def test_create_derives_priority(tools, users):
    t = tools.create_ticket(
        title="Payroll system is down",
        category="software",
        reported_by_id=users["reporter"].id,
        impact=Level.HIGH,
        urgency=Level.HIGH,
    )
    assert t["priority"] == "urgent"
    assert t["ticketNumber"] == "TKT-0001"


def test_create_keeps_explicit_priority(tools, users):
    t = tools.create_ticket(
        title="Payroll system is down",
        category="software",
        reported_by_id=users["reporter"].id,
        impact=Level.HIGH,
        urgency=Level.HIGH,
        priority=TicketPriority.LOW,
    )
    assert t["priority"] == "low"


def test_create_reports_errors(tools, users):
    short = tools.create_ticket(title="Hi", category="software", reported_by_id=users["reporter"].id)
    assert short["error"] == "Invalid ticket"

    ghost = tools.create_ticket(title="Nobody filed this", category="software", reported_by_id=99)
    assert ghost["errors"][0]["field"] == "reportedById"


def test_update_returns_changes(tools, users):
    t = tools.create_ticket(title="Monitor flickers", category="hardware", reported_by_id=users["reporter"].id)

    out = tools.update_ticket(
        t["id"], status=TicketStatus.IN_PROGRESS, assigned_to_id=users["agent"].id, updated_by_id=users["agent"].id
    )

    assert out["ticket"]["status"] == "in_progress"
    assert out["changes"] == {
        "status": {"from": "open", "to": "in_progress"},
        "assignedToId": {"from": None, "to": users["agent"].id},
    }
    assert tools.ticket_activity(t["id"])[0]["details"] == out["changes"]


def test_not_found_results(tools, users):
    assert tools.get_ticket(42) == {"error": "Ticket not found", "ticket_id": 42}
    assert tools.update_ticket(42, status=TicketStatus.CLOSED)["error"] == "Ticket not found"
    assert tools.add_comment(42, users["agent"].id, "hello")["error"] == "Ticket not found"
    assert tools.ticket_activity(42) == []


def test_list_and_comment(tools, users):
    for i in range(3):
        tools.create_ticket(title=f"Ticket number {i}", category="other", reported_by_id=users["reporter"].id)

    assert [t["id"] for t in tools.list_tickets(limit=2, offset=1)] == [2, 3]

    c = tools.add_comment(1, users["agent"].id, "Checking logs", is_internal=True)
    assert c["isInternal"] is True
    assert [a["action"] for a in tools.ticket_activity(1)] == ["commented", "created"]


def test_get_ticket_by_number(tools, users):
    for title in ("First broken thing", "Second broken thing"):
        tools.create_ticket(title=title, category="other", reported_by_id=users["reporter"].id)

    assert tools.get_ticket_by_number("TKT-0002")["title"] == "Second broken thing"
    assert tools.get_ticket_by_number(" tkt-0001 ")["id"] == 1
    assert tools.get_ticket_by_number("TKT-0009") == {"error": "Ticket not found", "ticket_number": "TKT-0009"}


@pytest.mark.anyio
async def test_build_mcp_registers_tools(store, hub):
    mcp = build_mcp(store, hub)
    names = {t.name for t in await mcp.list_tools()}
    assert names == {
        "list_tickets", "get_ticket", "get_ticket_by_number", "create_ticket", "update_ticket",
        "add_comment", "ticket_activity",
    }
