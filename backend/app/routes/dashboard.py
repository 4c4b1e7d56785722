"""
Dashboard API routes - standing metrics and performance segments.

Both views accept the intake either as a `semester` query parameter or as
a path segment; "all" (or no value) covers every student.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query

from app.database import get_store
from app.schemas import DashboardMetrics, PerformanceData
from app.services.analytics import get_dashboard_metrics, get_dashboard_performance
from app.services.record_store import RecordStore

router = APIRouter()

SEMESTER_QUERY = Query(None, description="Intake key; 'all' or omitted for every student")


@router.get("/api/dashboard/metrics", response_model=DashboardMetrics)
def dashboard_metrics(
    semester: Optional[str] = SEMESTER_QUERY,
    store: RecordStore = Depends(get_store)
):
    """Total students, Dean's List and probation counts, average CGPA."""
    return get_dashboard_metrics(store, semester)


@router.get("/api/dashboard/metrics/{semester}", response_model=DashboardMetrics)
def dashboard_metrics_for_semester(semester: str, store: RecordStore = Depends(get_store)):
    return get_dashboard_metrics(store, semester)


@router.get("/api/dashboard/performance", response_model=PerformanceData)
def dashboard_performance(
    semester: Optional[str] = SEMESTER_QUERY,
    store: RecordStore = Depends(get_store)
):
    """
    Students split into Dean's List, probation and good standing.

    A zero-credit student below 2.00 CGPA is counted by the probation
    metric but appears in none of these lists.
    """
    return get_dashboard_performance(store, semester)


@router.get("/api/dashboard/performance/{semester}", response_model=PerformanceData)
def dashboard_performance_for_semester(semester: str, store: RecordStore = Depends(get_store)):
    return get_dashboard_performance(store, semester)
