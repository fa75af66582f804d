from sqlalchemy.orm import Session, selectinload
from typing import List, Optional
from datetime import datetime, timezone

from app.crud.base import CRUDBase
from app.models.course import Course
from app.models.course_enrollment import CourseEnrollment
from app.schemas.course_enrollment import CourseEnrollment as CourseEnrollmentSchema

class CRUDCourseEnrollment(CRUDBase[CourseEnrollment, CourseEnrollmentSchema, CourseEnrollmentSchema]):

    def _query_with_relationships(self, db: Session):
        return db.query(CourseEnrollment).options(
            selectinload(CourseEnrollment.user),
            selectinload(CourseEnrollment.course).selectinload(Course.chapters),
            selectinload(CourseEnrollment.chapter_progress),
        )

    def get_by_user_and_course(self, db: Session, user_id: int, course_id: int) -> Optional[CourseEnrollment]:
        return (
            self._query_with_relationships(db)
            .filter(CourseEnrollment.user_id == user_id)
            .filter(CourseEnrollment.course_id == course_id)
            .first()
        )

    def get_by_user(self, db: Session, *, user_id: int) -> List[CourseEnrollment]:
        return (
            self._query_with_relationships(db)
            .filter(CourseEnrollment.user_id == user_id)
            .order_by(CourseEnrollment.enrolled_at.desc(), CourseEnrollment.id.desc())
            .all()
        )

    def get_by_course(self, db: Session, *, course_id: int) -> List[CourseEnrollment]:
        return self._query_with_relationships(db).filter(CourseEnrollment.course_id == course_id).all()

    def mark_completed(self, db: Session, *, enrollment: CourseEnrollment) -> CourseEnrollment:
        if enrollment.is_completed:
            return enrollment
        enrollment.is_completed = True
        enrollment.completed_at = datetime.now(timezone.utc)
        db.add(enrollment)
        db.commit()
        db.refresh(enrollment)
        return enrollment

course_enrollment = CRUDCourseEnrollment(CourseEnrollment)
