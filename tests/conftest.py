"""Pytest configuration and shared fixtures.

This module provides fixtures used across the test suite:
- An in-memory SQLite record store
- A factory for organizations, workers, courses, attempts and answers
- A FastAPI test client wired to the in-memory store
"""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only")
os.environ.setdefault("ALGORITHM", "HS256")

from collections.abc import Generator
from datetime import datetime
from typing import Any, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from compliance_training.models import (
    Base,
    Course,
    CourseAssignment,
    Organization,
    QuizAnswer,
    QuizAttempt,
    QuizQuestion,
    User,
)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def engine():
    """Create a fresh in-memory database for each test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine) -> Generator[Session, None, None]:
    """Provide a session bound to the in-memory database."""
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# Record Factory
# =============================================================================


class RecordFactory:
    """Creates records in the test database with sensible defaults."""

    def __init__(self, db: Session):
        self.db = db
        self._emails = 0

    def _save(self, record: Any) -> Any:
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def organization(self, name: str = "Acme Care") -> Organization:
        return self._save(Organization(name=name))

    def worker(
        self,
        organization: Organization,
        job_title: Optional[str] = "Support Worker",
        worker_category: Optional[str] = "full_time",
        role: str = "worker",
        is_active: bool = True,
    ) -> User:
        self._emails += 1
        return self._save(User(
            email=f"worker{self._emails}@example.com",
            full_name=f"Worker {self._emails}",
            organization_id=organization.id,
            role=role,
            job_title=job_title,
            worker_category=worker_category,
            is_active=is_active,
        ))

    def course(
        self,
        title: str,
        objectives: Optional[list] = None,
        pass_mark: int = 80,
        max_attempts: Optional[int] = 3,
        organization: Optional[Organization] = None,
    ) -> Course:
        return self._save(Course(
            title=title,
            objectives=objectives or [],
            pass_mark=pass_mark,
            max_attempts=max_attempts,
            organization_id=organization.id if organization else None,
        ))

    def question(self, course: Course, objective_id: Optional[str]) -> QuizQuestion:
        return self._save(QuizQuestion(
            course_id=course.id,
            question=f"Question on {objective_id}",
            objective_id=objective_id,
        ))

    def attempt(
        self,
        worker: User,
        course: Course,
        score: int,
        passed: bool,
        attempt_number: int = 1,
        created_at: Optional[datetime] = None,
    ) -> QuizAttempt:
        attempt = QuizAttempt(
            worker_id=worker.id,
            course_id=course.id,
            score=score,
            passed=passed,
            attempt_number=attempt_number,
        )
        if created_at is not None:
            attempt.created_at = created_at
        return self._save(attempt)

    def answers(
        self,
        attempt: QuizAttempt,
        question: QuizQuestion,
        correct: int = 0,
        incorrect: int = 0,
    ) -> None:
        """Record `correct` right and `incorrect` wrong answers to a question."""
        for is_correct in [True] * correct + [False] * incorrect:
            self.db.add(QuizAnswer(
                attempt_id=attempt.id,
                question_id=question.id,
                is_correct=is_correct,
            ))
        self.db.commit()

    def assignment(self, worker: User, course: Course, status: str) -> CourseAssignment:
        return self._save(CourseAssignment(
            worker_id=worker.id,
            course_id=course.id,
            status=status,
        ))


@pytest.fixture
def records(db_session) -> RecordFactory:
    """Provide a record factory bound to the test session."""
    return RecordFactory(db_session)


# =============================================================================
# Shared Scenario
# =============================================================================


@pytest.fixture
def org_data(records) -> dict[str, Any]:
    """An organization with two courses, four workers and six attempts.

    Fire Safety:       w1 #1 60 fail (Jan 10), w1 #2 85 pass (Feb 10),
                       w2 #1 90 pass (Feb 15)
    Infection Control: w3 #1 40 fail (Jan 5), w3 #2 50 fail (Jan 20),
                       w3 #3 80 pass (Feb 20)
    w4 (Driver) has no attempts and no assignments.
    """
    org = records.organization("Acme Care")
    other_org = records.organization("Elsewhere Ltd")

    fire = records.course(
        "Fire Safety",
        objectives=[
            {"id": "fs-1", "text": "Use an extinguisher"},
            {"id": "fs-2", "text": "Plan an evacuation"},
        ],
        organization=org,
    )
    infection = records.course(
        "Infection Control",
        objectives=[{"id": "ic-1", "text": "Hand hygiene"}],
        organization=org,
    )

    w1 = records.worker(org, job_title="Nurse", worker_category="full_time")
    w2 = records.worker(org, job_title="Nurse", worker_category="full_time")
    w3 = records.worker(org, job_title="Carer", worker_category="part_time")
    w4 = records.worker(org, job_title="Driver", worker_category=None)
    outsider = records.worker(other_org, job_title="Nurse", worker_category="full_time")

    q_fs1 = records.question(fire, "fs-1")
    q_fs2 = records.question(fire, "fs-2")
    q_ic1 = records.question(infection, "ic-1")

    a1 = records.attempt(w1, fire, 60, False, 1, datetime(2025, 1, 10))
    a2 = records.attempt(w1, fire, 85, True, 2, datetime(2025, 2, 10))
    a3 = records.attempt(w2, fire, 90, True, 1, datetime(2025, 2, 15))
    a4 = records.attempt(w3, infection, 40, False, 1, datetime(2025, 1, 5))
    a5 = records.attempt(w3, infection, 50, False, 2, datetime(2025, 1, 20))
    a6 = records.attempt(w3, infection, 80, True, 3, datetime(2025, 2, 20))
    stray = records.attempt(outsider, fire, 10, False, 4, datetime(2025, 2, 11))

    records.answers(a1, q_fs1, incorrect=1)
    records.answers(a1, q_fs2, incorrect=1)
    records.answers(a2, q_fs1, correct=1)
    records.answers(a2, q_fs2, incorrect=1)
    records.answers(a3, q_fs1, correct=1)
    records.answers(a3, q_fs2, correct=1)
    records.answers(a4, q_ic1, incorrect=1)
    records.answers(a5, q_ic1, incorrect=1)
    records.answers(a6, q_ic1, correct=1)
    records.answers(stray, q_fs1, incorrect=5)

    records.assignment(w1, fire, "completed")
    records.assignment(w2, fire, "in_progress")
    records.assignment(w3, infection, "completed")
    records.assignment(w3, fire, "overdue")
    records.assignment(outsider, fire, "overdue")

    return {
        "org": org,
        "other_org": other_org,
        "fire": fire,
        "infection": infection,
        "workers": [w1, w2, w3, w4],
        "outsider": outsider,
    }


# =============================================================================
# API Fixtures
# =============================================================================


@pytest.fixture
def app(db_session):
    """The FastAPI app with the database dependency bound to the test session."""
    from compliance_training.db.base import get_db
    from compliance_training.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app, records):
    """Test client authenticated as an active admin."""
    from fastapi.testclient import TestClient

    from compliance_training.core.dependencies import get_current_active_user

    admin_org = records.organization("Admin Org")
    admin = records.worker(admin_org, job_title=None, worker_category=None, role="admin")
    app.dependency_overrides[get_current_active_user] = lambda: admin

    return TestClient(app)
