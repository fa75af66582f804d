from typing import List

from sqlalchemy.orm import Session, selectinload

from app.crud.base import CRUDBase
from app.models.course import Course
from app.models.course_enrollment import CourseEnrollment
from app.schemas.course import CourseCreate, CourseUpdate

class CRUDCourse(CRUDBase[Course, CourseCreate, CourseUpdate]):

    def _query_with_relationships(self, db: Session):
        return db.query(Course).options(
            selectinload(Course.owner),
            selectinload(Course.chapters),
            selectinload(Course.enrollments),
        )

    def get(self, db: Session, id: int):
        return self._query_with_relationships(db).filter(Course.id == id).first()

    def get_active(self, db: Session, *, skip: int = 0, limit: int = 100) -> List[Course]:
        return (
            self._query_with_relationships(db)
            .filter(Course.is_active == True)
            .order_by(Course.created_at.desc(), Course.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_by_enrolled_user(self, db: Session, *, user_id: int) -> List[Course]:
        return (
            self._query_with_relationships(db)
            .join(CourseEnrollment, CourseEnrollment.course_id == Course.id)
            .filter(CourseEnrollment.user_id == user_id)
            .filter(Course.is_active == True)
            .order_by(CourseEnrollment.enrolled_at.desc(), Course.id.desc())
            .all()
        )

    def deactivate(self, db: Session, *, db_obj: Course) -> Course:
        return self.update(db, db_obj=db_obj, obj_in={"is_active": False})

course = CRUDCourse(Course)
