"""
API endpoints for performance analytics.
"""
from typing import Any, Optional
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from compliance_training.core.dependencies import get_current_active_user
from compliance_training.db.base import get_db
from compliance_training.models.user import User
from compliance_training.core.analytics.schemas import (
    AnalyticsResult,
    DetailedOrgPerformanceResult,
    FilterOptionsResult,
    MonthlyDigestResult,
    OrgPerformanceOverviewResult,
    PerformanceFilters,
    WeeklyDigestResult,
    WorkerLearningNeedsResult,
)
from compliance_training.services import performance_service

router = APIRouter()


def _with_status(response: Response, result: AnalyticsResult) -> AnalyticsResult:
    """Report store failures as 503 while keeping the result envelope."""
    if not result.success:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return result


# ============= Worker Endpoints =============

@router.get(
    "/workers/{worker_id}/learning-needs",
    response_model=WorkerLearningNeedsResult,
    response_model_exclude_none=True,
)
def get_worker_learning_needs(
    worker_id: int,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Get a worker's learning needs: courses passed at risk and objectives
    needing support.
    """
    result = performance_service.get_worker_learning_needs(db, worker_id)
    return _with_status(response, result)


# ============= Organization Endpoints =============

@router.get(
    "/organizations/{organization_id}/overview",
    response_model=OrgPerformanceOverviewResult,
    response_model_exclude_none=True,
)
def get_org_performance_overview(
    organization_id: int,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Get the objectives the organization's workers struggle with most.
    """
    result = performance_service.get_org_performance_overview(db, organization_id)
    return _with_status(response, result)


@router.get(
    "/organizations/{organization_id}/performance",
    response_model=DetailedOrgPerformanceResult,
    response_model_exclude_none=True,
)
def get_detailed_org_performance(
    organization_id: int,
    response: Response,
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    role: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    course_id: Optional[str] = Query(None, alias="courseId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Get the detailed performance report, optionally filtered by date range,
    role, worker category and course.
    """
    try:
        filters = PerformanceFilters(
            start_date=start_date,
            end_date=end_date,
            role=role,
            category=category,
            course_id=course_id,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()],
        )

    result = performance_service.get_detailed_org_performance(db, organization_id, filters)
    return _with_status(response, result)


@router.get(
    "/organizations/{organization_id}/filter-options",
    response_model=FilterOptionsResult,
    response_model_exclude_none=True,
)
def get_filter_options(
    organization_id: int,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Get the roles and courses the performance report can be filtered by.
    """
    result = performance_service.get_performance_filter_options(db, organization_id)
    return _with_status(response, result)


# ============= Digest Endpoints =============

@router.get(
    "/organizations/{organization_id}/digests/monthly",
    response_model=MonthlyDigestResult,
    response_model_exclude_none=True,
)
def get_monthly_digest(
    organization_id: int,
    response: Response,
    reference_date: Optional[date] = Query(None, alias="referenceDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Get the performance digest for the month before referenceDate
    (default: the previous month).
    """
    result = performance_service.get_monthly_performance_digest(db, organization_id, reference_date)
    return _with_status(response, result)


@router.get(
    "/organizations/{organization_id}/digests/weekly",
    response_model=WeeklyDigestResult,
    response_model_exclude_none=True,
)
def get_weekly_digest(
    organization_id: int,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Get the weekly compliance digest.
    """
    result = performance_service.get_weekly_compliance_digest(db, organization_id)
    return _with_status(response, result)
