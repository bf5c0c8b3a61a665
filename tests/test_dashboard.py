import random
from datetime import timedelta

from helpdesk.db.seed import seed_demo_data
from helpdesk.domain.models import Ticket, User, utcnow
from helpdesk.services import dashboard_service


def _ticket(store, reporter, **fields):
    now = utcnow()
    values = {"title": "Dashboard ticket", "category": "software", "reported_by_id": reporter,
              "created_at": now, "updated_at": now}
    values.update(fields)
    return store.create(Ticket, **values)


def test_metrics_on_empty_store(store):
    m = dashboard_service.dashboard_metrics(store)
    assert (m.total_tickets, m.open_tickets, m.closed_today, m.average_response_time) == (0, 0, 0, 0.0)
    assert m.total_trend.trend == "up"


def test_metrics_counts(store, users):
    reporter = users["reporter"].id
    now = utcnow()
    _ticket(store, reporter)
    _ticket(store, reporter, status="in_progress", created_at=now - timedelta(hours=3), updated_at=now)
    _ticket(store, reporter, status="closed", closed_at=now, created_at=now - timedelta(hours=1), updated_at=now)
    _ticket(store, reporter, status="closed", closed_at=now - timedelta(days=2),
            created_at=now - timedelta(days=3), updated_at=now - timedelta(days=2))

    m = dashboard_service.dashboard_metrics(store, now=now)

    assert m.total_tickets == 4
    assert m.open_tickets == 1
    assert m.closed_today == 1
    # (3 + 1 + 24) / 3
    assert m.average_response_time == 9.3


def test_metrics_endpoint_shape(client):
    body = client.get("/api/dashboard/metrics").json()
    assert set(body) == {
        "totalTickets", "openTickets", "closedToday", "averageResponseTime",
        "totalTrend", "openTrend", "closedTrend", "responseTrend",
    }
    assert body["responseTrend"] == {"hours": 0.5, "trend": "down"}


def test_team_performance_lists_agents(store, users):
    agent = users["agent"]
    _ticket(store, users["reporter"].id, assigned_to_id=agent.id, status="resolved")
    _ticket(store, users["reporter"].id, assigned_to_id=agent.id)

    rows = dashboard_service.team_performance(store, rng=random.Random(1))

    assert [r.user_name for r in rows] == ["Alex Agent"]
    row = rows[0]
    assert (row.assigned, row.resolved) == (2, 1)
    assert 90 <= row.satisfaction <= 100


def test_status_breakdown_percentages(store, users):
    reporter = users["reporter"].id
    for status in ("open", "open", "closed"):
        _ticket(store, reporter, status=status)

    rows = {r.status: r for r in dashboard_service.status_breakdown(store)}

    assert list(rows) == ["open", "in_progress", "pending", "resolved", "closed"]
    assert (rows["open"].count, rows["open"].percentage) == (2, 67)
    assert (rows["closed"].count, rows["closed"].percentage) == (1, 33)
    assert rows["pending"].percentage == 0


def test_priority_distribution(client, store, users):
    _ticket(store, users["reporter"].id, priority="urgent")
    body = client.get("/api/dashboard/priority-distribution").json()
    assert body == [
        {"priority": "urgent", "count": 1},
        {"priority": "high", "count": 0},
        {"priority": "medium", "count": 0},
        {"priority": "low", "count": 0},
    ]


def test_demo_seed(store):
    seed_demo_data(store, rng=random.Random(42))

    assert [u.username for u in store.list(User)] == ["johnsmith", "sarahconnor", "davidmiller", "janeuser"]
    tickets = store.list(Ticket)
    assert len(tickets) == 23
    assert tickets[0].ticket_number == "TKT-0001"
    assert all(t.ticket_number == f"TKT-{t.id:04d}" for t in tickets)
    assert all(t.updated_at >= t.created_at for t in tickets)
