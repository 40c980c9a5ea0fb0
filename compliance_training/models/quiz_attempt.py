"""
Models for tracking worker quiz attempts and their answers.
"""
from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from compliance_training.db.base import Base


class QuizAttempt(Base):
    """Quiz attempt model - one sitting of a course quiz by a worker."""

    __tablename__ = "quiz_attempts"

    id = Column(Integer, primary_key=True, index=True)
    worker_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)

    score = Column(Integer, nullable=False, default=0)  # 0-100
    passed = Column(Boolean, nullable=False, default=False)
    attempt_number = Column(Integer, nullable=False, default=1)  # 1-based, per worker and course

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    worker = relationship("User", back_populates="quiz_attempts")
    course = relationship("Course")
    answers = relationship("QuizAnswer", back_populates="attempt", cascade="all, delete-orphan")


class QuizAnswer(Base):
    """Quiz answer model - tracks a single question answered within an attempt."""

    __tablename__ = "quiz_answers"

    id = Column(Integer, primary_key=True, index=True)
    attempt_id = Column(Integer, ForeignKey("quiz_attempts.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("quiz_questions.id", ondelete="CASCADE"), nullable=False)
    is_correct = Column(Boolean, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    attempt = relationship("QuizAttempt", back_populates="answers")
    question = relationship("QuizQuestion")
