"""
Digest content for the scheduled organization reports.

Only the numbers are produced here; rendering and delivery of the reports
belong to the notification service.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from compliance_training.core.config import settings
from compliance_training.core.analytics.aggregation import percentage
from compliance_training.core.analytics.detailed_report import DetailedPerformanceReporter
from compliance_training.core.analytics.schemas import (
    DigestCourse,
    DigestCourseRow,
    DigestObjective,
    DigestRetraining,
    MonthlyPerformanceDigest,
    PerformanceFilters,
    RoleCompliance,
    WeeklyComplianceDigest,
)
from compliance_training.core.analytics.store import PerformanceStore

logger = logging.getLogger(__name__)


def previous_month_period(reference: date) -> Tuple[datetime, datetime]:
    """
    Get the calendar month before the reference date.

    Returns:
        (first instant, last instant) of that month
    """
    month_start = datetime(reference.year, reference.month, 1)
    period_end = month_start - timedelta(microseconds=1)
    period_start = datetime(period_end.year, period_end.month, 1)
    return period_start, period_end


class ReportDigestBuilder:
    """Builds the monthly performance and weekly compliance digests."""

    def __init__(
        self,
        db: Session,
        top_courses_limit: Optional[int] = None,
        role_limit: Optional[int] = None
    ):
        self.store = PerformanceStore(db)
        self.reporter = DetailedPerformanceReporter(db)
        self.top_courses_limit = (
            settings.DIGEST_TOP_COURSES_LIMIT if top_courses_limit is None else top_courses_limit
        )
        self.role_limit = settings.DIGEST_ROLE_LIMIT if role_limit is None else role_limit

    def monthly(self, organization_id: int, reference_date: Optional[date] = None) -> MonthlyPerformanceDigest:
        """
        Build the performance digest for the month before reference_date.

        Args:
            organization_id: Organization ID
            reference_date: Any day of the month after the reported one;
                defaults to today

        Returns:
            MonthlyPerformanceDigest

        Raises:
            StoreReadError: If the record store fails
        """
        period_start, period_end = previous_month_period(reference_date or date.today())
        report = self.reporter.build(
            organization_id,
            PerformanceFilters(start_date=period_start, end_date=period_end),
        )

        top_courses = sorted(report.course_performance, key=lambda c: c.pass_rate, reverse=True)

        digest = MonthlyPerformanceDigest(
            organization_id=organization_id,
            month=period_start.strftime("%B %Y"),
            period_start=period_start,
            period_end=period_end,
            top_courses=[
                DigestCourse(title=c.course_title, completion_rate=c.pass_rate)
                for c in top_courses[:self.top_courses_limit]
            ],
            struggling_objectives=[
                DigestObjective(text=o.objective_text, incorrect_rate=o.incorrect_percentage)
                for o in report.struggling_objectives
            ],
            retraining=DigestRetraining(
                workers_in_retraining=report.retraining_stats.workers_in_retraining,
                completion_rate=report.retraining_stats.retraining_completion_rate,
            ),
            course_performance=[
                DigestCourseRow(title=c.course_title, pass_rate=c.pass_rate, avg_score=c.avg_score)
                for c in report.course_performance
            ],
        )
        logger.info(f"Monthly digest for org {organization_id}: {digest.month}")
        return digest

    def weekly(self, organization_id: int) -> WeeklyComplianceDigest:
        """
        Build the compliance digest: overdue work, overall completion and
        completion by role.

        Raises:
            StoreReadError: If the record store fails
        """
        workers = self.store.workers_in_organization(organization_id)
        if not workers:
            return WeeklyComplianceDigest(
                organization_id=organization_id,
                overdue_count=0,
                compliance_rate=0,
                role_compliance=[],
            )

        counts = self.store.assignment_status_counts([int(w.id) for w in workers])  # type: ignore
        total_assigned = sum(counts.values())

        report = self.reporter.build(organization_id)
        role_compliance = [
            RoleCompliance(role=r.role, rate=r.completion_rate)
            for r in report.role_performance[:self.role_limit]
        ]

        digest = WeeklyComplianceDigest(
            organization_id=organization_id,
            overdue_count=counts.get("overdue", 0),
            compliance_rate=percentage(counts.get("completed", 0), total_assigned),
            role_compliance=role_compliance,
        )
        logger.info(
            f"Weekly digest for org {organization_id}: {digest.overdue_count} overdue, "
            f"{digest.compliance_rate}% compliant"
        )
        return digest
