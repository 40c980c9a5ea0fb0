"""
Shared aggregation helpers.

Reports are built in two steps: answers are first grouped into tallies keyed
by (course_id, objective_id), then the tallies are finalized into output
rows. Keeping the steps apart lets each be tested on its own.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Mapping, Tuple, Union

from compliance_training.core.analytics.schemas import StrugglingObjective
from compliance_training.models.quiz_attempt import QuizAnswer, QuizAttempt

ObjectiveKey = Tuple[int, str]


def round_half_up(value: Union[int, float, Decimal], digits: int = 0) -> Union[int, float]:
    """
    Round halves up, the way dashboard figures have always been rounded.

    Python's round() rounds halves to even, which would turn 12.5% into 12%.

    Args:
        value: Non-negative number to round
        digits: Decimal places to keep

    Returns:
        int when digits is 0, otherwise float
    """
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    if digits == 0:
        return int(rounded)
    return float(rounded)


def percentage(part: int, whole: int) -> int:
    """Integer percentage of part in whole; 0 when whole is 0."""
    if whole <= 0:
        return 0
    return int(round_half_up(Decimal(part) * 100 / Decimal(whole)))


def mean(total: int, count: int) -> int:
    """Rounded mean; 0 when count is 0."""
    if count <= 0:
        return 0
    return int(round_half_up(Decimal(total) / Decimal(count)))


@dataclass
class ObjectiveTally:
    """Running correct/total counters for one objective of one course."""
    course_id: int
    objective_id: str
    objective_text: str
    course_title: str
    correct: int = 0
    total: int = 0

    def record(self, is_correct: bool) -> None:
        self.total += 1
        if is_correct:
            self.correct += 1

    @property
    def correct_percentage(self) -> int:
        return percentage(self.correct, self.total)

    @property
    def incorrect_percentage(self) -> int:
        return percentage(self.total - self.correct, self.total)


def tally_objectives(
    answers: Iterable[QuizAnswer],
    attempts_by_id: Mapping[int, QuizAttempt]
) -> Dict[ObjectiveKey, ObjectiveTally]:
    """
    Group answers by the course objective their question tests.

    Answers whose question has no objective, whose attempt is not in
    attempts_by_id, or whose objective is missing from the course's current
    objective list are skipped.

    Args:
        answers: Answers with their questions loaded
        attempts_by_id: Attempts (with courses loaded) the answers belong to

    Returns:
        Tallies keyed by (course_id, objective_id), in first-seen order
    """
    tallies: Dict[ObjectiveKey, ObjectiveTally] = {}

    for answer in answers:
        question = answer.question
        objective_id = question.objective_id if question is not None else None
        if not objective_id:
            continue

        attempt = attempts_by_id.get(answer.attempt_id)  # type: ignore
        course = attempt.course if attempt is not None else None
        if course is None:
            continue

        objective = course.find_objective(objective_id)
        if objective is None:
            continue

        key = (int(attempt.course_id), str(objective_id))  # type: ignore
        tally = tallies.get(key)
        if tally is None:
            tally = ObjectiveTally(
                course_id=key[0],
                objective_id=key[1],
                objective_text=str(objective.get("text", "")),
                course_title=str(course.title or "Unknown Course"),
            )
            tallies[key] = tally
        tally.record(bool(answer.is_correct))

    return tallies


def rank_struggling_objectives(
    tallies: Iterable[ObjectiveTally],
    limit: int
) -> List[StrugglingObjective]:
    """
    Turn objective tallies into the most-missed objectives.

    Sorted by incorrect percentage, highest first. Ties keep first-seen order.
    """
    rows = [
        StrugglingObjective(
            objective_text=tally.objective_text,
            course_title=tally.course_title,
            incorrect_percentage=tally.incorrect_percentage,
            total_attempts=tally.total,
        )
        for tally in tallies
        if tally.total > 0
    ]
    rows.sort(key=lambda row: row.incorrect_percentage, reverse=True)
    return rows[:limit]
