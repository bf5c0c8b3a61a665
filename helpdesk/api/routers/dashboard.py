from fastapi import APIRouter, Depends

from helpdesk.api.deps import StoreDep
from helpdesk.db.store import EntityStore
from helpdesk.domain.schemas import DashboardMetrics, PriorityDistribution, StatusBreakdown, TeamPerformanceMetric
from helpdesk.services.dashboard_service import (
    dashboard_metrics, priority_distribution, status_breakdown, team_performance,
)

router = APIRouter(prefix="/api", tags=["Dashboard"])


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/dashboard/metrics", response_model=DashboardMetrics)
def get_metrics(store: EntityStore = Depends(StoreDep)):
    return dashboard_metrics(store)


@router.get("/dashboard/team-performance", response_model=list[TeamPerformanceMetric])
def get_team_performance(store: EntityStore = Depends(StoreDep)):
    return team_performance(store)


@router.get("/dashboard/status-breakdown", response_model=list[StatusBreakdown])
def get_status_breakdown(store: EntityStore = Depends(StoreDep)):
    return status_breakdown(store)


@router.get("/dashboard/priority-distribution", response_model=list[PriorityDistribution])
def get_priority_distribution(store: EntityStore = Depends(StoreDep)):
    return priority_distribution(store)
