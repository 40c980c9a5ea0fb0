"""Unit tests for the performance service operations."""

from datetime import date
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from compliance_training.core.analytics import PerformanceStore, StoreReadError
from compliance_training.core.analytics.schemas import PerformanceFilters
from compliance_training.services import performance_service


@pytest.fixture
def failing_db():
    """Session whose every query fails."""
    db = MagicMock()
    db.query.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))
    return db


class TestStoreFailures:
    """Store failures come back as unsuccessful results."""

    def test_store_raises_typed_error(self, failing_db):
        with pytest.raises(StoreReadError) as exc_info:
            PerformanceStore(failing_db).attempts_for_worker(1)

        assert "connection refused" in str(exc_info.value)

    def test_learning_needs(self, failing_db):
        result = performance_service.get_worker_learning_needs(failing_db, 1)

        assert result.success is False
        assert result.needs is None
        assert "connection refused" in result.error

    def test_org_overview(self, failing_db):
        result = performance_service.get_org_performance_overview(failing_db, 1)

        assert result.success is False
        assert result.top_struggling_objectives is None
        assert "connection refused" in result.error

    def test_detailed_performance(self, failing_db):
        result = performance_service.get_detailed_org_performance(failing_db, 1, PerformanceFilters())

        assert result.success is False
        assert result.data is None
        assert result.error

    def test_digests_and_filter_options(self, failing_db):
        assert performance_service.get_monthly_performance_digest(failing_db, 1).success is False
        assert performance_service.get_weekly_compliance_digest(failing_db, 1).success is False
        assert performance_service.get_performance_filter_options(failing_db, 1).success is False

    def test_failure_after_partial_load_returns_nothing(self, db_session, org_data, monkeypatch):
        def fail(*args, **kwargs):
            raise StoreReadError("Failed to load quiz answers: timeout")

        monkeypatch.setattr(PerformanceStore, "answers_for_attempts", fail)

        result = performance_service.get_detailed_org_performance(db_session, org_data["org"].id)

        assert result.success is False
        assert result.data is None
        assert result.error == "Failed to load quiz answers: timeout"


class TestSuccessfulResults:
    """Empty and populated states are both successes."""

    def test_learning_needs_for_worker_without_attempts(self, db_session, records):
        worker = records.worker(records.organization())

        result = performance_service.get_worker_learning_needs(db_session, worker.id)

        assert result.success is True
        assert result.needs == []
        assert result.error is None

    def test_overview_for_empty_organization(self, db_session, records):
        org = records.organization()

        result = performance_service.get_org_performance_overview(db_session, org.id)

        assert result.success is True
        assert result.top_struggling_objectives == []

    def test_overview_scenario(self, db_session, org_data):
        result = performance_service.get_org_performance_overview(db_session, org_data["org"].id)

        assert result.success is True
        assert len(result.top_struggling_objectives) == 3

    def test_detailed_performance_defaults_to_no_filters(self, db_session, org_data):
        result = performance_service.get_detailed_org_performance(db_session, org_data["org"].id)

        assert result.success is True
        assert len(result.data.course_performance) == 2

    def test_monthly_digest(self, db_session, org_data):
        result = performance_service.get_monthly_performance_digest(
            db_session, org_data["org"].id, date(2025, 3, 1)
        )

        assert result.success is True
        assert result.digest.month == "February 2025"

    def test_weekly_digest(self, db_session, org_data):
        result = performance_service.get_weekly_compliance_digest(db_session, org_data["org"].id)

        assert result.success is True
        assert result.digest.compliance_rate == 50

    def test_filter_options(self, db_session, org_data):
        result = performance_service.get_performance_filter_options(db_session, org_data["org"].id)

        assert result.success is True
        assert result.options.roles == ["Carer", "Driver", "Nurse"]
