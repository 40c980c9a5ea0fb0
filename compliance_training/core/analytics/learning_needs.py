"""
Learning needs analyzer for a single worker.
Flags weak objectives and courses passed with no margin to spare.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from compliance_training.core.config import settings
from compliance_training.core.analytics.aggregation import (
    ObjectiveKey,
    ObjectiveTally,
    tally_objectives,
)
from compliance_training.core.analytics.schemas import LearningNeed
from compliance_training.core.analytics.store import PerformanceStore
from compliance_training.models.course import Course
from compliance_training.models.quiz_attempt import QuizAttempt

logger = logging.getLogger(__name__)

COURSE_RISK_ID = "course-risk"
COURSE_RISK_TEXT = "Overall Course Proficiency"
COURSE_RISK_ACTION = "Schedule supervision check-in"


class LearningNeedsAnalyzer:
    """
    Works out where a worker needs support.

    Two kinds of need are reported:
    - at_risk: the latest pass of a course came on the last allowed attempt
      with a score exactly on the pass mark.
    - needs_support: an objective answered correctly less than the threshold
      percentage of the time, across all attempts at its course.
    """

    def __init__(
        self,
        db: Session,
        needs_support_threshold: Optional[int] = None,
        default_pass_mark: Optional[int] = None,
        default_max_attempts: Optional[int] = None
    ):
        self.store = PerformanceStore(db)
        self.needs_support_threshold = (
            settings.NEEDS_SUPPORT_THRESHOLD if needs_support_threshold is None else needs_support_threshold
        )
        self.default_pass_mark = settings.DEFAULT_PASS_MARK if default_pass_mark is None else default_pass_mark
        self.default_max_attempts = (
            settings.DEFAULT_MAX_ATTEMPTS if default_max_attempts is None else default_max_attempts
        )

    def analyze(self, worker_id: int) -> List[LearningNeed]:
        """
        Calculate a worker's learning needs.

        Args:
            worker_id: Worker (user) ID

        Returns:
            Needs grouped by course, in the order the worker first attempted
            each course. An at-risk record comes before the course's
            objective records.

        Raises:
            StoreReadError: If the record store fails
        """
        attempts = self.store.attempts_for_worker(worker_id)
        if not attempts:
            return []

        answers = self.store.answers_for_attempts([int(a.id) for a in attempts])  # type: ignore
        tallies = tally_objectives(answers, {int(a.id): a for a in attempts})  # type: ignore

        # Group by course
        attempts_by_course: Dict[int, List[QuizAttempt]] = {}
        for attempt in attempts:
            attempts_by_course.setdefault(int(attempt.course_id), []).append(attempt)  # type: ignore

        needs: List[LearningNeed] = []
        for course_attempts in attempts_by_course.values():
            course = course_attempts[0].course
            if course is None:
                continue

            at_risk = self._at_risk_need(course, course_attempts)
            if at_risk is not None:
                needs.append(at_risk)

            needs.extend(self._objective_needs(course, tallies))

        logger.info(
            f"Learning needs for worker {worker_id}: {len(needs)} needs "
            f"across {len(attempts_by_course)} courses"
        )
        return needs

    def _at_risk_need(self, course: Course, attempts: List[QuizAttempt]) -> Optional[LearningNeed]:
        """Flag a pass achieved on the final allowed attempt with a borderline score."""
        passed_attempts = [a for a in attempts if bool(a.passed)]
        if not passed_attempts:
            return None

        # max() keeps the first of equal attempt numbers
        last_pass = max(passed_attempts, key=lambda a: int(a.attempt_number))  # type: ignore
        max_attempts = course.max_attempts or self.default_max_attempts
        pass_mark = course.pass_mark or self.default_pass_mark

        is_last_attempt = last_pass.attempt_number == max_attempts
        is_borderline = last_pass.score == pass_mark
        if not (is_last_attempt and is_borderline):
            return None

        return LearningNeed(
            objective_id=COURSE_RISK_ID,
            objective_text=COURSE_RISK_TEXT,
            course_id=int(course.id),  # type: ignore
            course_title=str(course.title),
            status="at_risk",
            correct_percentage=int(last_pass.score),  # type: ignore
            total_questions=0,
            suggested_action=COURSE_RISK_ACTION,
        )

    def _objective_needs(
        self,
        course: Course,
        tallies: Dict[ObjectiveKey, ObjectiveTally]
    ) -> List[LearningNeed]:
        """Objectives of a course answered correctly less often than the threshold."""
        needs = []
        for objective in course.objectives or []:
            tally = tallies.get((int(course.id), str(objective.get("id"))))  # type: ignore
            if tally is None or tally.total == 0:
                continue

            if tally.correct_percentage < self.needs_support_threshold:
                needs.append(LearningNeed(
                    objective_id=tally.objective_id,
                    objective_text=str(objective.get("text", "")),
                    course_id=int(course.id),  # type: ignore
                    course_title=str(course.title),
                    status="needs_support",
                    correct_percentage=tally.correct_percentage,
                    total_questions=tally.total,
                    suggested_action=f"Assign refresher for {course.title}",
                ))
        return needs
