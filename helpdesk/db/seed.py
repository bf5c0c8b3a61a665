import random
import logging
from datetime import timedelta

from helpdesk.db.store import EntityStore
from helpdesk.domain.models import Ticket, utcnow
from helpdesk.domain.schemas import TicketCreate, UserCreate
from helpdesk.services.kb_service import create_article
from helpdesk.services.ticket_lifecycle import create_ticket
from helpdesk.services.user_service import create_user

logger = logging.getLogger("seed")

DEMO_USERS = [
    {"username": "johnsmith", "full_name": "John Smith", "email": "john.smith@example.com",
     "role": "agent", "department": "IT Support"},
    {"username": "sarahconnor", "full_name": "Sarah Connor", "email": "sarah.connor@example.com",
     "role": "agent", "department": "Support"},
    {"username": "davidmiller", "full_name": "David Miller", "email": "david.miller@example.com",
     "role": "agent", "department": "Support"},
    {"username": "janeuser", "full_name": "Jane User", "email": "jane.user@example.com",
     "role": "user", "department": "Finance"},
]

# (ticket fields, age)
DEMO_TICKETS = [
    (
        {
            "title": "Cannot access email after password reset",
            "description": "After resetting my password, I can no longer access my email account. "
                           "I get an \"invalid credentials\" error even though the password is correct.",
            "status": "open", "priority": "high", "category": "software", "sub_category": "email",
            "impact": "medium", "urgency": "high", "assigned_to": "sarahconnor",
            "configuration_item": "Email System", "caller_location": "Headquarters",
            "issue_location": "Headquarters", "preferred_contact": "email",
        },
        timedelta(hours=2),
    ),
    (
        {
            "title": "VPN connection issues when working remotely",
            "description": "The VPN connection keeps dropping every few minutes when working from home.",
            "status": "in_progress", "priority": "medium", "category": "network", "sub_category": "vpn",
            "impact": "medium", "urgency": "medium", "assigned_to": "johnsmith",
            "configuration_item": "VPN", "caller_location": "Remote",
            "issue_location": "Remote", "preferred_contact": "phone",
        },
        timedelta(hours=3),
    ),
    (
        {
            "title": "Need access to finance department shared drive",
            "description": "I need access to the finance department shared drive to complete my quarterly report.",
            "status": "pending", "priority": "low", "category": "access", "sub_category": "file_access",
            "impact": "low", "urgency": "medium", "assigned_to": "davidmiller",
            "configuration_item": "Shared Drive", "caller_location": "Headquarters",
            "issue_location": "Headquarters", "preferred_contact": "email",
        },
        timedelta(days=1),
    ),
]

GENERATED_TICKETS = 20


def seed_demo_data(store: EntityStore, rng: random.Random | None = None) -> None:
    rng = rng or random.Random(42)

    users = {u["username"]: create_user(store, UserCreate(**u)) for u in DEMO_USERS}
    agents = [u for u in users.values() if u.role == "agent"]
    reporter = users["janeuser"]
    now = utcnow()

    for fields, age in DEMO_TICKETS:
        fields = dict(fields)
        assignee = users[fields.pop("assigned_to")]
        ticket = create_ticket(
            store, TicketCreate(**fields, assigned_to_id=assignee.id, reported_by_id=reporter.id)
        )
        store.update(Ticket, ticket.id, created_at=now - age, updated_at=now - age)

    statuses = ["open", "in_progress", "pending", "resolved", "closed"]
    priorities = ["urgent", "high", "medium", "low"]
    for i in range(GENERATED_TICKETS):
        create_ticket(
            store,
            TicketCreate(
                title=f"Ticket {i + 4}",
                description=f"This is a generated ticket {i + 4} for testing purposes.",
                status=rng.choice(statuses),
                priority=rng.choice(priorities),
                category="other",
                sub_category="general",
                impact="medium",
                urgency="medium",
                assigned_to_id=rng.choice(agents).id,
                reported_by_id=reporter.id,
            ),
        )

    create_article(
        store,
        title="Resetting your password",
        content="Use the self-service portal to reset your password, then sign out of every device.",
        author_id=users["johnsmith"].id,
        is_published=True,
    )
    create_article(
        store,
        title="VPN troubleshooting (draft)",
        content="Check your network, restart the VPN client, then contact support with the error code.",
        author_id=users["sarahconnor"].id,
    )

    logger.info("seeded %s users, %s tickets", len(users), len(DEMO_TICKETS) + GENERATED_TICKETS)
