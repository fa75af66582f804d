from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base

class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, index=True, nullable=False)
    description = Column(String, nullable=True)
    thumbnail_url = Column(String(500), nullable=True)
    estimated_duration = Column(Integer, nullable=False, default=0) # minutes
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    owner = relationship("User", back_populates="owned_courses")
    tests = relationship("CourseTest", back_populates="course", cascade="all, delete-orphan")
    enrollments = relationship("CourseEnrollment", back_populates="course")
    chapters = relationship("Chapter", back_populates="course", order_by="Chapter.order",
                            cascade="all, delete-orphan")

    @property
    def owner_name(self):
        return self.owner.full_name if self.owner else None

    @property
    def chapter_count(self) -> int:
        return len(self.chapters)

    @property
    def enrollment_count(self) -> int:
        return len(self.enrollments)
