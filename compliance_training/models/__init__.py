"""Models module - Import all models here so metadata sees every table."""
from compliance_training.db.base import Base
from compliance_training.models.user import Organization, User
from compliance_training.models.course import Course, QuizQuestion, CourseAssignment
from compliance_training.models.quiz_attempt import QuizAttempt, QuizAnswer

__all__ = ["Base", "Organization", "User", "Course", "QuizQuestion", "CourseAssignment", "QuizAttempt", "QuizAnswer"]
