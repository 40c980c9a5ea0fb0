"""
Organization and worker models.
"""
from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from compliance_training.db.base import Base


class Organization(Base):
    """Organization model - the tenant that owns workers and courses."""

    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    users = relationship("User", back_populates="organization")
    courses = relationship("Course", back_populates="organization")


class User(Base):
    """User model. Workers, supervisors and admins share this table."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=True)
    role = Column(String, default="worker")  # worker, supervisor, admin
    job_title = Column(String, nullable=True)  # e.g. Direct Care Staff
    worker_category = Column(String, nullable=True)  # e.g. full_time, contractor
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    organization = relationship("Organization", back_populates="users")
    quiz_attempts = relationship("QuizAttempt", back_populates="worker")
    course_assignments = relationship("CourseAssignment", back_populates="worker")
