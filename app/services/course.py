import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from app.crud.attempt import test_attempt as crud_test_attempt
from app.crud.course import course as crud_course
from app.crud.course_enrollment import course_enrollment as crud_enrollment
from app.models.attempt import TestAttempt
from app.models.course import Course
from app.models.course_enrollment import CourseEnrollment
from app.schemas.course import CourseCreate, CourseUpdate
from app.schemas.user import UserContext
from app.services.email import NotificationSender
from app.services.notification_dispatcher import notification_dispatcher

logger = logging.getLogger(__name__)


class CourseService:

    def get_course_or_404(self, db: Session, course_id: int) -> Course:
        course = crud_course.get(db, id=course_id)
        if not course:
            raise NotFoundError("Course not found.")
        return course

    def get_active_course_or_404(self, db: Session, course_id: int) -> Course:
        course = self.get_course_or_404(db, course_id)
        if not course.is_active:
            raise NotFoundError("Course not found.")
        return course

    def can_manage(self, current_user_context: UserContext, course: Course) -> bool:
        return current_user_context.is_admin or course.owner_id == current_user_context.user_id

    def require_course_management(self, current_user_context: UserContext, course: Course):
        if not self.can_manage(current_user_context, course):
            raise PermissionDeniedError("Only the course owner can manage this course.")

    def create_course(self, db: Session, *, course_in: CourseCreate, current_user_context: UserContext) -> Course:
        if not (current_user_context.is_instructor or current_user_context.is_admin):
            raise PermissionDeniedError("Only instructors can create courses.")
        course = crud_course.create(db, obj_in={**course_in.model_dump(), "owner_id": current_user_context.user_id})
        logger.info(f"Course {course.id} created by user {current_user_context.user_id}")
        return course

    def get_course(self, db: Session, *, course_id: int, current_user_context: UserContext) -> Course:
        course = self.get_course_or_404(db, course_id)
        if not course.is_active and not self.can_manage(current_user_context, course):
            raise NotFoundError("Course not found.")
        return course

    def get_courses(self, db: Session, *, skip: int = 0, limit: int = 100) -> List[Course]:
        return crud_course.get_active(db, skip=skip, limit=limit)

    def update_course(self, db: Session, *, course_id: int, course_in: CourseUpdate,
                      current_user_context: UserContext) -> Course:
        course = self.get_active_course_or_404(db, course_id)
        self.require_course_management(current_user_context, course)
        crud_course.update(db, db_obj=course, obj_in=course_in)
        logger.info(f"Course {course.id} updated by user {current_user_context.user_id}")
        return crud_course.get(db, id=course.id)

    async def delete_course(self, db: Session, *, course_id: int, current_user_context: UserContext,
                            sender: NotificationSender) -> Course:
        """Retire a course. The row stays so attempts and certificates remain verifiable."""
        course = self.get_active_course_or_404(db, course_id)
        self.require_course_management(current_user_context, course)
        learners = [enrollment.user for enrollment in crud_enrollment.get_by_course(db, course_id=course.id)]

        crud_course.deactivate(db, db_obj=course)
        logger.info(f"Course {course.id} removed by user {current_user_context.user_id}")

        await notification_dispatcher.notify_course_removed(db, sender, course=course, learners=learners)
        return course

    def enroll(self, db: Session, *, course_id: int, current_user_context: UserContext) -> CourseEnrollment:
        course = self.get_active_course_or_404(db, course_id)
        user_id = current_user_context.user_id

        if crud_enrollment.get_by_user_and_course(db, user_id=user_id, course_id=course.id):
            raise ConflictError("User is already enrolled in this course.")

        try:
            enrollment = crud_enrollment.create(db, obj_in={"user_id": user_id, "course_id": course.id})
        except IntegrityError:
            db.rollback()
            raise ConflictError("User is already enrolled in this course.")
        logger.info(f"User {user_id} enrolled in course {course.id}")
        return enrollment

    async def unenroll(self, db: Session, *, course_id: int, current_user_context: UserContext,
                       sender: NotificationSender) -> None:
        enrollment = self.get_my_enrollment(db, course_id=course_id, current_user_context=current_user_context)
        if enrollment.test_attempts:
            raise ConflictError("You cannot unenroll from a course after taking one of its tests.")

        learner, course = enrollment.user, enrollment.course
        crud_enrollment.delete(db, db_obj=enrollment)
        logger.info(f"User {learner.id} unenrolled from course {course.id}")

        await notification_dispatcher.notify_unenrolled(db, sender, learner=learner, course=course)

    def get_my_enrollment(self, db: Session, *, course_id: int, current_user_context: UserContext) -> CourseEnrollment:
        enrollment = crud_enrollment.get_by_user_and_course(
            db, user_id=current_user_context.user_id, course_id=course_id
        )
        if not enrollment:
            raise NotFoundError("Enrollment not found.")
        return enrollment

    def get_my_enrollments(self, db: Session, *, current_user_context: UserContext) -> List[CourseEnrollment]:
        return crud_enrollment.get_by_user(db, user_id=current_user_context.user_id)

    def get_my_courses(self, db: Session, *, current_user_context: UserContext) -> List[Course]:
        return crud_course.get_by_enrolled_user(db, user_id=current_user_context.user_id)

    def get_my_test_attempts(self, db: Session, *, course_id: int, current_user_context: UserContext) -> List[TestAttempt]:
        enrollment = self.get_my_enrollment(db, course_id=course_id, current_user_context=current_user_context)
        return crud_test_attempt.get_by_enrollment(db, enrollment_id=enrollment.id)


course_service = CourseService()
