import random
from datetime import datetime

from helpdesk.db.store import EntityStore
from helpdesk.domain.models import Ticket, User, utcnow
from helpdesk.domain.schemas import (
    CountTrend, DashboardMetrics, HoursTrend, PriorityDistribution, StatusBreakdown, TeamPerformanceMetric,
    TicketPriority, TicketStatus,
)

# No ticket history is kept, so trends are fixed sample values
SAMPLE_TRENDS = {
    "total_trend": CountTrend(count=12, trend="up"),
    "open_trend": CountTrend(count=5, trend="down"),
    "closed_trend": CountTrend(count=3, trend="up"),
    "response_trend": HoursTrend(hours=0.5, trend="down"),
}


def _average_response_hours(tickets: list[Ticket]) -> float:
    # Time to last update stands in for response time; open tickets have no response yet
    hours = [
        (t.updated_at - t.created_at).total_seconds() / 3600
        for t in tickets
        if t.status != TicketStatus.OPEN.value
    ]
    return round(sum(hours) / len(hours), 1) if hours else 0.0


def _percentage(count: int, total: int) -> int:
    # Round half up
    return int(count * 100 / total + 0.5) if total else 0


def dashboard_metrics(store: EntityStore, now: datetime | None = None) -> DashboardMetrics:
    tickets = store.list(Ticket)
    now = now or utcnow()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

    closed_today = sum(
        1 for t in tickets
        if t.status == TicketStatus.CLOSED.value and t.closed_at is not None and t.closed_at >= midnight
    )
    return DashboardMetrics(
        total_tickets=len(tickets),
        open_tickets=sum(1 for t in tickets if t.status == TicketStatus.OPEN.value),
        closed_today=closed_today,
        average_response_time=_average_response_hours(tickets),
        **SAMPLE_TRENDS,
    )


def team_performance(store: EntityStore, rng: random.Random | None = None) -> list[TeamPerformanceMetric]:
    rng = rng or random.Random()
    tickets = store.list(Ticket)
    done = {TicketStatus.RESOLVED.value, TicketStatus.CLOSED.value}

    out = []
    for user in store.list(User, User.role == "agent"):
        assigned = [t for t in tickets if t.assigned_to_id == user.id]
        out.append(
            TeamPerformanceMetric(
                user_id=user.id,
                user_name=user.full_name,
                user_role=user.role,
                avatar_url=user.avatar_url,
                assigned=len(assigned),
                resolved=sum(1 for t in assigned if t.status in done),
                average_response_time=_average_response_hours(assigned),
                # Placeholder until surveys exist
                satisfaction=rng.randint(90, 100),
            )
        )
    return out


def status_breakdown(store: EntityStore) -> list[StatusBreakdown]:
    tickets = store.list(Ticket)
    counts = {s.value: 0 for s in TicketStatus}
    for t in tickets:
        counts[t.status] = counts.get(t.status, 0) + 1
    return [
        StatusBreakdown(status=s, count=c, percentage=_percentage(c, len(tickets)))
        for s, c in counts.items()
    ]


def priority_distribution(store: EntityStore) -> list[PriorityDistribution]:
    counts = {p.value: 0 for p in TicketPriority}
    for t in store.list(Ticket):
        counts[t.priority] = counts.get(t.priority, 0) + 1
    return [PriorityDistribution(priority=p, count=c) for p, c in counts.items()]
