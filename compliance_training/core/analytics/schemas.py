"""
Pydantic schemas for the performance analytics engine.

Fields are snake_case in Python and serialized as camelCase, which is the
shape the admin dashboard consumes.
"""
from typing import List, Literal, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class AnalyticsModel(BaseModel):
    """Base model with camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============= Worker learning needs =============

class LearningNeed(AnalyticsModel):
    """A learning objective (or whole course) a worker needs help with."""
    objective_id: str
    objective_text: str
    course_id: int
    course_title: str
    status: Literal["needs_support", "at_risk", "on_track"]
    correct_percentage: int
    total_questions: int
    suggested_action: str


# ============= Organization overview =============

class StrugglingObjective(AnalyticsModel):
    """An objective ranked by how often it is answered incorrectly."""
    objective_text: str
    course_title: str
    incorrect_percentage: int
    total_attempts: int  # answers counted towards the percentage


# ============= Detailed performance =============

class PerformanceFilters(AnalyticsModel):
    """Optional filters narrowing the detailed performance report."""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    role: Optional[str] = None
    category: Optional[str] = None
    course_id: Optional[int] = None

    @field_validator("start_date", "end_date", "role", "category", "course_id", mode="before")
    @classmethod
    def empty_str_to_none(cls, v):
        """Convert empty string or null-like values to None."""
        if v in ("", "null", "undefined", None):
            return None
        return v


class CoursePerformance(AnalyticsModel):
    """Score distribution for one course."""
    course_id: int
    course_title: str
    avg_score: int
    pass_rate: int
    avg_attempts: float
    total_attempts: int


class RolePerformance(AnalyticsModel):
    """Aggregate results for one (job title, worker category) group."""
    role: str
    category: str
    avg_score: int
    completion_rate: int
    overdue_rate: int
    total_workers: int


class RetrainedCourse(AnalyticsModel):
    title: str
    count: int


class RetrainingStats(AnalyticsModel):
    """Retake activity: any attempt after the first counts as retraining."""
    workers_in_retraining: int = 0
    top_retrained_courses: List[RetrainedCourse] = Field(default_factory=list)
    retraining_completion_rate: int = 0


class DetailedPerformanceData(AnalyticsModel):
    """Composite report; the defaults are the empty report."""
    course_performance: List[CoursePerformance] = Field(default_factory=list)
    struggling_objectives: List[StrugglingObjective] = Field(default_factory=list)
    role_performance: List[RolePerformance] = Field(default_factory=list)
    retraining_stats: RetrainingStats = Field(default_factory=RetrainingStats)


class CourseOption(AnalyticsModel):
    id: int
    title: str


class PerformanceFilterOptions(AnalyticsModel):
    """Choices offered by the performance page filter bar."""
    roles: List[str] = Field(default_factory=list)
    courses: List[CourseOption] = Field(default_factory=list)


# ============= Report digests =============

class DigestCourse(AnalyticsModel):
    title: str
    completion_rate: int


class DigestCourseRow(AnalyticsModel):
    title: str
    pass_rate: int
    avg_score: int


class DigestObjective(AnalyticsModel):
    text: str
    incorrect_rate: int


class DigestRetraining(AnalyticsModel):
    workers_in_retraining: int
    completion_rate: int


class MonthlyPerformanceDigest(AnalyticsModel):
    """Content of the monthly performance report for one organization."""
    organization_id: int
    month: str  # e.g. "March 2025"
    period_start: datetime
    period_end: datetime
    top_courses: List[DigestCourse]
    struggling_objectives: List[DigestObjective]
    retraining: DigestRetraining
    course_performance: List[DigestCourseRow]


class RoleCompliance(AnalyticsModel):
    role: str
    rate: int


class WeeklyComplianceDigest(AnalyticsModel):
    """Content of the weekly compliance report for one organization."""
    organization_id: int
    overdue_count: int
    compliance_rate: int
    role_compliance: List[RoleCompliance]


# ============= Operation results =============

class AnalyticsResult(AnalyticsModel):
    """Envelope returned by every analytics operation."""
    success: bool
    error: Optional[str] = None


class WorkerLearningNeedsResult(AnalyticsResult):
    needs: Optional[List[LearningNeed]] = None


class OrgPerformanceOverviewResult(AnalyticsResult):
    top_struggling_objectives: Optional[List[StrugglingObjective]] = None


class DetailedOrgPerformanceResult(AnalyticsResult):
    data: Optional[DetailedPerformanceData] = None


class MonthlyDigestResult(AnalyticsResult):
    digest: Optional[MonthlyPerformanceDigest] = None


class WeeklyDigestResult(AnalyticsResult):
    digest: Optional[WeeklyComplianceDigest] = None


class FilterOptionsResult(AnalyticsResult):
    options: Optional[PerformanceFilterOptions] = None
