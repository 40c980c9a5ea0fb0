from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from compliance_training.db.base import Base


class Course(Base):
    """Course model."""

    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    objectives = Column(JSON, nullable=True)  # Ordered list of {"id": ..., "text": ...}
    pass_mark = Column(Integer, default=80)  # Percentage
    max_attempts = Column(Integer, nullable=True)  # None means unbounded
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    organization = relationship("Organization", back_populates="courses")
    questions = relationship("QuizQuestion", back_populates="course", cascade="all, delete-orphan")
    assignments = relationship("CourseAssignment", back_populates="course", cascade="all, delete-orphan")

    def find_objective(self, objective_id):
        """Return the objective dict with the given id, or None."""
        for objective in self.objectives or []:
            if objective.get("id") == objective_id:
                return objective
        return None


class QuizQuestion(Base):
    """Quiz question model. Each question may test one course objective."""

    __tablename__ = "quiz_questions"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    question = Column(Text, nullable=False, default="")
    objective_id = Column(String, nullable=True)  # Refers into Course.objectives
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    course = relationship("Course", back_populates="questions")


class CourseAssignment(Base):
    """Course assigned to a worker."""

    __tablename__ = "course_assignments"

    id = Column(Integer, primary_key=True, index=True)
    worker_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    status = Column(String, default="not_started")  # not_started, in_progress, completed, failed, overdue
    assigned_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    worker = relationship("User", back_populates="course_assignments")
    course = relationship("Course", back_populates="assignments")
