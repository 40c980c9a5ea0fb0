"""
Detailed organization performance report.
Course score distribution, struggling objectives, role/category results and
retraining activity, all over an optionally filtered population.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from compliance_training.core.config import settings
from compliance_training.core.analytics.aggregation import (
    mean,
    percentage,
    rank_struggling_objectives,
    round_half_up,
    tally_objectives,
)
from compliance_training.core.analytics.schemas import (
    CourseOption,
    CoursePerformance,
    DetailedPerformanceData,
    PerformanceFilterOptions,
    PerformanceFilters,
    RetrainedCourse,
    RetrainingStats,
    RolePerformance,
    StrugglingObjective,
)
from compliance_training.core.analytics.store import PerformanceStore
from compliance_training.models.course import CourseAssignment
from compliance_training.models.quiz_attempt import QuizAttempt
from compliance_training.models.user import User

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"

RoleKey = Tuple[Optional[str], Optional[str]]


@dataclass
class CourseTally:
    """Running counters for one course's attempts."""
    title: str
    total_score: int = 0
    passed_count: int = 0
    attempts_count: int = 0
    workers: Set[int] = field(default_factory=set)


@dataclass
class RoleTally:
    """Running counters for one (job title, worker category) group."""
    role: str
    category: str
    total_score: int = 0
    score_count: int = 0
    completed: int = 0
    overdue: int = 0
    total_assignments: int = 0
    workers: Set[int] = field(default_factory=set)


class DetailedPerformanceReporter:
    """
    Builds the detailed performance report for an organization.

    Filters narrow the population before anything is aggregated: role and
    category select workers, dates select attempts by creation time, and a
    course narrows both attempts and assignments.
    """

    def __init__(
        self,
        db: Session,
        struggling_limit: Optional[int] = None,
        retrained_limit: Optional[int] = None
    ):
        self.store = PerformanceStore(db)
        self.struggling_limit = settings.TOP_STRUGGLING_LIMIT if struggling_limit is None else struggling_limit
        self.retrained_limit = settings.TOP_RETRAINED_LIMIT if retrained_limit is None else retrained_limit

    def build(
        self,
        organization_id: int,
        filters: Optional[PerformanceFilters] = None
    ) -> DetailedPerformanceData:
        """
        Build the report.

        Args:
            organization_id: Organization ID
            filters: Optional population filters

        Returns:
            DetailedPerformanceData; the empty report when no worker matches

        Raises:
            StoreReadError: If the record store fails
        """
        filters = filters or PerformanceFilters()

        workers = self.store.workers_in_organization(
            organization_id, role=filters.role, category=filters.category
        )
        if not workers:
            logger.info(f"Org {organization_id} report: no workers match filters")
            return DetailedPerformanceData()

        worker_ids = [int(w.id) for w in workers]  # type: ignore
        attempts = self.store.attempts_for_workers(
            worker_ids,
            start_date=filters.start_date,
            end_date=filters.end_date,
            course_id=filters.course_id,
        )
        assignments = self.store.assignments_for_workers(worker_ids, course_id=filters.course_id)

        report = DetailedPerformanceData(
            course_performance=self._course_performance(attempts),
            struggling_objectives=self._struggling_objectives(attempts),
            role_performance=self._role_performance(workers, attempts, assignments),
            retraining_stats=self._retraining_stats(attempts),
        )

        logger.info(
            f"Org {organization_id} report: {len(workers)} workers, {len(attempts)} attempts, "
            f"{len(assignments)} assignments"
        )
        return report

    def filter_options(self, organization_id: int) -> PerformanceFilterOptions:
        """Roles and courses an organization's report can be filtered by."""
        roles = self.store.job_titles_in_organization(organization_id)
        courses = self.store.courses_for_organization(organization_id)
        return PerformanceFilterOptions(
            roles=roles,
            courses=[CourseOption(id=int(c.id), title=str(c.title)) for c in courses],  # type: ignore
        )

    def _course_performance(self, attempts: List[QuizAttempt]) -> List[CoursePerformance]:
        stats: Dict[int, CourseTally] = {}
        for attempt in attempts:
            course_id = int(attempt.course_id)  # type: ignore
            if course_id not in stats:
                title = attempt.course.title if attempt.course is not None else None
                stats[course_id] = CourseTally(title=str(title or UNKNOWN))
            stat = stats[course_id]
            stat.total_score += int(attempt.score or 0)  # type: ignore
            if attempt.passed:
                stat.passed_count += 1
            stat.attempts_count += 1
            stat.workers.add(int(attempt.worker_id))  # type: ignore

        return [
            CoursePerformance(
                course_id=course_id,
                course_title=stat.title,
                avg_score=mean(stat.total_score, stat.attempts_count),
                pass_rate=percentage(stat.passed_count, stat.attempts_count),
                avg_attempts=float(round_half_up(Decimal(stat.attempts_count) / len(stat.workers), 1)),
                total_attempts=stat.attempts_count,
            )
            for course_id, stat in stats.items()
            if stat.workers
        ]

    def _struggling_objectives(self, attempts: List[QuizAttempt]) -> List[StrugglingObjective]:
        if not attempts:
            return []

        answers = self.store.answers_for_attempts([int(a.id) for a in attempts])  # type: ignore
        tallies = tally_objectives(answers, {int(a.id): a for a in attempts})  # type: ignore
        return rank_struggling_objectives(tallies.values(), self.struggling_limit)

    def _role_performance(
        self,
        workers: List[User],
        attempts: List[QuizAttempt],
        assignments: List[CourseAssignment]
    ) -> List[RolePerformance]:
        # Seed every group so roles without quiz activity still show up
        stats: Dict[RoleKey, RoleTally] = {}
        worker_keys: Dict[int, RoleKey] = {}
        for worker in workers:
            key: RoleKey = (worker.job_title, worker.worker_category)  # type: ignore
            if key not in stats:
                stats[key] = RoleTally(
                    role=str(worker.job_title or UNKNOWN),
                    category=str(worker.worker_category or UNKNOWN),
                )
            stats[key].workers.add(int(worker.id))  # type: ignore
            worker_keys[int(worker.id)] = key  # type: ignore

        for attempt in attempts:
            key = worker_keys.get(int(attempt.worker_id))  # type: ignore
            if key is None:
                continue
            stats[key].total_score += int(attempt.score or 0)  # type: ignore
            stats[key].score_count += 1

        for assignment in assignments:
            key = worker_keys.get(int(assignment.worker_id))  # type: ignore
            if key is None:
                continue
            stat = stats[key]
            stat.total_assignments += 1
            if assignment.status == "completed":
                stat.completed += 1
            if assignment.status == "overdue":
                stat.overdue += 1

        return [
            RolePerformance(
                role=stat.role,
                category=stat.category,
                avg_score=mean(stat.total_score, stat.score_count),
                completion_rate=percentage(stat.completed, stat.total_assignments),
                overdue_rate=percentage(stat.overdue, stat.total_assignments),
                total_workers=len(stat.workers),
            )
            for stat in stats.values()
            if stat.score_count > 0 or stat.total_assignments > 0
        ]

    def _retraining_stats(self, attempts: List[QuizAttempt]) -> RetrainingStats:
        retraining = [a for a in attempts if int(a.attempt_number or 0) > 1]  # type: ignore
        if not retraining:
            return RetrainingStats()

        course_counts: Dict[str, int] = {}
        for attempt in retraining:
            title = attempt.course.title if attempt.course is not None else None
            title = str(title or UNKNOWN)
            course_counts[title] = course_counts.get(title, 0) + 1

        top_courses = sorted(course_counts.items(), key=lambda item: item[1], reverse=True)
        passed = sum(1 for a in retraining if a.passed)

        return RetrainingStats(
            workers_in_retraining=len({int(a.worker_id) for a in retraining}),  # type: ignore
            top_retrained_courses=[
                RetrainedCourse(title=title, count=count)
                for title, count in top_courses[:self.retrained_limit]
            ],
            retraining_completion_rate=percentage(passed, len(retraining)),
        )
