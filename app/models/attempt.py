from sqlalchemy import Column, Integer, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base

class TestAttempt(Base):
    __test__ = False
    __tablename__ = "test_attempts"

    id = Column(Integer, primary_key=True, index=True)
    enrollment_id = Column(Integer, ForeignKey("course_enrollments.id"), nullable=False, index=True)
    test_id = Column(Integer, ForeignKey("course_tests.id"), nullable=False, index=True)
    attempted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    score = Column(Integer, nullable=False)
    is_passed = Column(Boolean, nullable=False)
    total_questions = Column(Integer, nullable=False)
    correct_answers = Column(Integer, nullable=False)

    enrollment = relationship("CourseEnrollment", back_populates="test_attempts")
    test = relationship("CourseTest", back_populates="attempts")
    user_answers = relationship("UserAnswer", back_populates="test_attempt", cascade="all, delete-orphan")
    certificate = relationship("Certificate", back_populates="test_attempt", uselist=False)
