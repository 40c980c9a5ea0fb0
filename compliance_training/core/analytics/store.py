"""
Read-only access to the records the analytics engine aggregates.

Every query result is ordered by primary key so repeated reports over an
unchanged store come out identical. Database failures surface as
StoreReadError; callers never see a half-loaded result.
"""
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from compliance_training.models.user import User
from compliance_training.models.course import Course, CourseAssignment
from compliance_training.models.quiz_attempt import QuizAttempt, QuizAnswer

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AnalyticsError(Exception):
    """Base error for the analytics engine."""


class StoreReadError(AnalyticsError):
    """The record store failed to answer a query."""


class PerformanceStore:
    """Filtered queries over workers, attempts, answers, assignments and courses."""

    def __init__(self, db: Session):
        self.db = db

    def _read(self, description: str, query: Callable[[], T]) -> T:
        try:
            return query()
        except SQLAlchemyError as e:
            reason = getattr(e, "orig", None) or e
            logger.error(f"Error loading {description}: {reason}")
            raise StoreReadError(f"Failed to load {description}: {reason}") from e

    def workers_in_organization(
        self,
        organization_id: int,
        role: Optional[str] = None,
        category: Optional[str] = None
    ) -> List[User]:
        """
        Get the users of an organization.

        Args:
            organization_id: Organization ID
            role: Only users with this job title
            category: Only users in this worker category

        Returns:
            Users ordered by ID
        """
        def query():
            q = self.db.query(User).filter(User.organization_id == organization_id)
            if role:
                q = q.filter(User.job_title == role)
            if category:
                q = q.filter(User.worker_category == category)
            return q.order_by(User.id).all()

        return self._read("organization workers", query)

    def attempts_for_worker(self, worker_id: int) -> List[QuizAttempt]:
        """Get every quiz attempt by one worker, with its course loaded."""
        return self._read(
            "worker attempts",
            lambda: self.db.query(QuizAttempt)
            .options(joinedload(QuizAttempt.course))
            .filter(QuizAttempt.worker_id == worker_id)
            .order_by(QuizAttempt.id)
            .all()
        )

    def attempts_for_workers(
        self,
        worker_ids: Sequence[int],
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        course_id: Optional[int] = None
    ) -> List[QuizAttempt]:
        """
        Get the quiz attempts of a set of workers.

        Args:
            worker_ids: Worker IDs
            start_date: Only attempts created at or after this time
            end_date: Only attempts created at or before this time
            course_id: Only attempts at this course

        Returns:
            Attempts ordered by ID, each with its course loaded
        """
        def query():
            q = self.db.query(QuizAttempt).options(joinedload(QuizAttempt.course)).filter(
                QuizAttempt.worker_id.in_(worker_ids)
            )
            if start_date is not None:
                q = q.filter(QuizAttempt.created_at >= start_date)
            if end_date is not None:
                q = q.filter(QuizAttempt.created_at <= end_date)
            if course_id is not None:
                q = q.filter(QuizAttempt.course_id == course_id)
            return q.order_by(QuizAttempt.id).all()

        return self._read("quiz attempts", query)

    def answers_for_attempts(self, attempt_ids: Sequence[int]) -> List[QuizAnswer]:
        """Get the answers given in a set of attempts, with their questions loaded."""
        return self._read(
            "quiz answers",
            lambda: self.db.query(QuizAnswer)
            .options(joinedload(QuizAnswer.question))
            .filter(QuizAnswer.attempt_id.in_(attempt_ids))
            .order_by(QuizAnswer.id)
            .all()
        )

    def assignments_for_workers(
        self,
        worker_ids: Sequence[int],
        course_id: Optional[int] = None
    ) -> List[CourseAssignment]:
        """Get the course assignments of a set of workers."""
        def query():
            q = self.db.query(CourseAssignment).filter(CourseAssignment.worker_id.in_(worker_ids))
            if course_id is not None:
                q = q.filter(CourseAssignment.course_id == course_id)
            return q.order_by(CourseAssignment.id).all()

        return self._read("course assignments", query)

    def assignment_status_counts(self, worker_ids: Sequence[int]) -> Dict[str, int]:
        """Count the assignments of a set of workers by status."""
        rows = self._read(
            "assignment counts",
            lambda: self.db.query(CourseAssignment.status, func.count(CourseAssignment.id))
            .filter(CourseAssignment.worker_id.in_(worker_ids))
            .group_by(CourseAssignment.status)
            .all()
        )
        return {str(status): int(count) for status, count in rows}

    def job_titles_in_organization(self, organization_id: int) -> List[str]:
        """Get the distinct, non-null job titles of an organization, sorted."""
        rows = self._read(
            "job titles",
            lambda: self.db.query(User.job_title)
            .filter(User.organization_id == organization_id, User.job_title.isnot(None))
            .distinct()
            .all()
        )
        return sorted(str(row[0]) for row in rows)

    def courses_for_organization(self, organization_id: int) -> List[Course]:
        """Get an organization's courses ordered by title."""
        return self._read(
            "courses",
            lambda: self.db.query(Course)
            .filter(Course.organization_id == organization_id)
            .order_by(Course.title, Course.id)
            .all()
        )
