from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.core.database import Base

class Certificate(Base):
    __tablename__ = "certificates"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    test_attempt_id = Column(Integer, ForeignKey("test_attempts.id"), nullable=False, unique=True)
    certificate_number = Column(String(200), nullable=False, unique=True, index=True)
    score = Column(Integer, nullable=False) # copied from the attempt at issuance, never edited
    issued_at = Column(DateTime(timezone=True), nullable=False)
    is_emailed = Column(Boolean, nullable=False, default=False)
    emailed_at = Column(DateTime(timezone=True), nullable=True)
    download_url = Column(String(500), nullable=True)

    user = relationship("User", back_populates="certificates")
    course = relationship("Course")
    test_attempt = relationship("TestAttempt", back_populates="certificate")

    @property
    def user_name(self):
        return self.user.full_name if self.user else None

    @property
    def course_title(self):
        return self.course.title if self.course else None
