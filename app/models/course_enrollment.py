from sqlalchemy import Column, Integer, Boolean, ForeignKey, DateTime, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.core.database import Base

class CourseEnrollment(Base):
    __tablename__ = "course_enrollments"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_course_enrollments_user_course"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    enrolled_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="course_enrollments")
    course = relationship("Course", back_populates="enrollments")
    test_attempts = relationship("TestAttempt", back_populates="enrollment", order_by="TestAttempt.attempted_at.desc()")
    chapter_progress = relationship("ChapterProgress", back_populates="enrollment", cascade="all, delete-orphan")

    @property
    def course_title(self):
        return self.course.title if self.course else None

    @property
    def total_chapters(self) -> int:
        return len(self.course.chapters) if self.course else 0

    @property
    def completed_chapters(self) -> int:
        return sum(1 for progress in self.chapter_progress if progress.is_completed)

    @property
    def progress_percentage(self) -> int:
        total = self.total_chapters
        if total == 0:
            return 0
        # half-up, same rounding as test scores
        return (200 * self.completed_chapters + total) // (2 * total)
