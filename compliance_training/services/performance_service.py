"""
Performance analytics operations.

Each operation returns a result envelope instead of raising: expected "no
data" states are successes with empty payloads, and store failures become
`success=False` with the error message.
"""
import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from compliance_training.core.analytics import (
    AnalyticsError,
    DetailedPerformanceReporter,
    LearningNeedsAnalyzer,
    OrgOverviewSummarizer,
    ReportDigestBuilder,
)
from compliance_training.core.analytics.schemas import (
    DetailedOrgPerformanceResult,
    FilterOptionsResult,
    MonthlyDigestResult,
    OrgPerformanceOverviewResult,
    PerformanceFilters,
    WeeklyDigestResult,
    WorkerLearningNeedsResult,
)

logger = logging.getLogger(__name__)


def get_worker_learning_needs(db: Session, worker_id: int) -> WorkerLearningNeedsResult:
    """Learning needs (at-risk courses and weak objectives) of one worker."""
    try:
        needs = LearningNeedsAnalyzer(db).analyze(worker_id)
        return WorkerLearningNeedsResult(success=True, needs=needs)
    except AnalyticsError as e:
        logger.error(f"Error calculating learning needs: {e}")
        return WorkerLearningNeedsResult(success=False, error=str(e))


def get_org_performance_overview(db: Session, organization_id: int) -> OrgPerformanceOverviewResult:
    """The objectives an organization's workers get wrong most often."""
    try:
        objectives = OrgOverviewSummarizer(db).summarize(organization_id)
        return OrgPerformanceOverviewResult(success=True, top_struggling_objectives=objectives)
    except AnalyticsError as e:
        logger.error(f"Error getting performance overview: {e}")
        return OrgPerformanceOverviewResult(success=False, error=str(e))


def get_detailed_org_performance(
    db: Session,
    organization_id: int,
    filters: Optional[PerformanceFilters] = None
) -> DetailedOrgPerformanceResult:
    """The detailed performance report of an organization."""
    try:
        data = DetailedPerformanceReporter(db).build(organization_id, filters)
        return DetailedOrgPerformanceResult(success=True, data=data)
    except AnalyticsError as e:
        logger.error(f"Error getting detailed performance: {e}")
        return DetailedOrgPerformanceResult(success=False, error=str(e))


def get_performance_filter_options(db: Session, organization_id: int) -> FilterOptionsResult:
    """Roles and courses for the performance report filters."""
    try:
        options = DetailedPerformanceReporter(db).filter_options(organization_id)
        return FilterOptionsResult(success=True, options=options)
    except AnalyticsError as e:
        logger.error(f"Error getting filter options: {e}")
        return FilterOptionsResult(success=False, error=str(e))


def get_monthly_performance_digest(
    db: Session,
    organization_id: int,
    reference_date: Optional[date] = None
) -> MonthlyDigestResult:
    """Monthly performance digest for the month before reference_date."""
    try:
        digest = ReportDigestBuilder(db).monthly(organization_id, reference_date)
        return MonthlyDigestResult(success=True, digest=digest)
    except AnalyticsError as e:
        logger.error(f"Error building monthly digest: {e}")
        return MonthlyDigestResult(success=False, error=str(e))


def get_weekly_compliance_digest(db: Session, organization_id: int) -> WeeklyDigestResult:
    """Weekly compliance digest of an organization."""
    try:
        digest = ReportDigestBuilder(db).weekly(organization_id)
        return WeeklyDigestResult(success=True, digest=digest)
    except AnalyticsError as e:
        logger.error(f"Error building weekly digest: {e}")
        return WeeklyDigestResult(success=False, error=str(e))
