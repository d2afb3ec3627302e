"""Dashboard and report figures."""

from typing import Optional

from fastapi import APIRouter, Depends

from ledgerdash.api.dependencies import get_components
from ledgerdash.models import AccountStats, BudgetUsage, DashboardSnapshot, MonthlySummary
from ledgerdash.orchestrator import AppComponents


router = APIRouter(tags=["reports"])


@router.get("/accounts/{account_id}/stats", response_model=AccountStats)
def get_stats(
    account_id: int,
    month: Optional[str] = None,
    components: AppComponents = Depends(get_components),
):
    return components.reports.get_stats(account_id, month)


@router.get("/accounts/{account_id}/reports/monthly", response_model=list[MonthlySummary])
def get_monthly_report(
    account_id: int,
    year: Optional[int] = None,
    components: AppComponents = Depends(get_components),
):
    return components.reports.monthly_summary(account_id, year)


@router.get("/accounts/{account_id}/dashboard", response_model=DashboardSnapshot)
def get_dashboard(
    account_id: int,
    month: Optional[str] = None,
    components: AppComponents = Depends(get_components),
):
    return components.dashboard.load(account_id, month)


@router.get("/projects/{project_id}/stats", response_model=BudgetUsage)
def get_project_stats(project_id: int, components: AppComponents = Depends(get_components)):
    return components.reports.project_stats(project_id)


@router.get("/cost-centers/{cost_center_id}/stats", response_model=BudgetUsage)
def get_cost_center_stats(cost_center_id: int, components: AppComponents = Depends(get_components)):
    return components.reports.cost_center_stats(cost_center_id)
