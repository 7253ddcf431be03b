"""
Reports & dashboard endpoints. Everything here is read-only and scoped to the
caller's sector; a global caller may narrow with ?sector_id=.
"""
from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from housing.api.deps import get_reports
from housing.core.auth import CurrentUser, get_current_user
from housing.core.insights import generate_insights
from housing.core.scope import narrow
from housing.schemas.occupancy import OccupancyRecordOut
from housing.schemas.report import (
    DashboardStats,
    InsightsOut,
    OccupancyReport,
    ResidentHistoryItem,
    UnitDetailReport,
    UnitOccupancyItem,
)
from housing.services.reporting import ReportingService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/dashboard", response_model=DashboardStats)
def dashboard_stats(
    reports: ReportingService = Depends(get_reports),
    current_user: CurrentUser = Depends(get_current_user),
    sector_id: Optional[int] = Query(None),
):
    return reports.dashboard_stats(narrow(current_user.scope, sector_id))


@router.get("/occupancy-stats", response_model=List[UnitOccupancyItem])
def occupancy_stats(
    reports: ReportingService = Depends(get_reports),
    current_user: CurrentUser = Depends(get_current_user),
    sector_id: Optional[int] = Query(None),
):
    return reports.occupancy_stats(narrow(current_user.scope, sector_id))


@router.get("/detailed", response_model=List[UnitDetailReport])
def detailed_report(
    reports: ReportingService = Depends(get_reports),
    current_user: CurrentUser = Depends(get_current_user),
    sector_id: Optional[int] = Query(None),
):
    return reports.detailed_report(narrow(current_user.scope, sector_id))


@router.get("/resident-history", response_model=List[ResidentHistoryItem])
def resident_history(
    reports: ReportingService = Depends(get_reports),
    current_user: CurrentUser = Depends(get_current_user),
    sector_id: Optional[int] = Query(None),
):
    return reports.resident_history(narrow(current_user.scope, sector_id))


@router.get("/occupancy", response_model=OccupancyReport)
def occupancy_report(
    reports: ReportingService = Depends(get_reports),
    current_user: CurrentUser = Depends(get_current_user),
    sector_id: Optional[int] = Query(None),
):
    return reports.occupancy_report(narrow(current_user.scope, sector_id))


@router.get("/recent-activity", response_model=List[OccupancyRecordOut])
def recent_activity(
    reports: ReportingService = Depends(get_reports),
    current_user: CurrentUser = Depends(get_current_user),
    limit: int = Query(10, ge=1, le=100),
):
    return reports.recent_activity(current_user.scope, limit)


@router.post("/insights", response_model=InsightsOut)
def ai_insights(
    reports: ReportingService = Depends(get_reports),
    current_user: CurrentUser = Depends(get_current_user),
    sector_id: Optional[int] = Query(None),
):
    """
    Narrative insights on the dashboard stats, generated by the LLM.
    """
    stats = reports.dashboard_stats(narrow(current_user.scope, sector_id))
    return InsightsOut(stats=stats, insights=generate_insights(stats))
