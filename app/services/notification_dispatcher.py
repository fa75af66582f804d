import asyncio
import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import NotificationTypeEnum, RelatedEntityEnum
from app.core.exceptions import NotificationError
from app.crud.certificate import certificate as crud_certificate
from app.models.attempt import TestAttempt
from app.models.certificate import Certificate
from app.models.course import Course
from app.models.course_test import CourseTest
from app.models.user import User
from app.services.email import EmailService, NotificationSender
from app.services.notification import notification_service

logger = logging.getLogger(__name__)


def should_alert_owner(attempt: TestAttempt) -> bool:
    return not attempt.is_passed or attempt.score < settings.OWNER_ALERT_SCORE_THRESHOLD


class NotificationDispatcher:
    """Sends workflow notifications. Nothing here ever raises to the caller."""

    def __init__(self, timeout_seconds: float = None):
        self.timeout_seconds = timeout_seconds

    @property
    def timeout(self) -> float:
        return self.timeout_seconds if self.timeout_seconds is not None else settings.NOTIFICATION_TIMEOUT_SECONDS

    async def _deliver(self, sender: NotificationSender, *, recipient: str, subject: str,
                       template_name: str, context: dict) -> None:
        try:
            body = EmailService.render_template(template_name, context)
            delivered = await asyncio.wait_for(sender.send(recipient, subject, body), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise NotificationError(f"Sending '{subject}' to {recipient} timed out after {self.timeout}s") from e
        except Exception as e:
            raise NotificationError(f"Sending '{subject}' to {recipient} failed: {e}") from e
        if not delivered:
            raise NotificationError(f"Sender rejected '{subject}' for {recipient}")

    def _record_in_app(self, db: Session, **kwargs) -> None:
        try:
            notification_service.create_notification(db, **kwargs)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Could not store in-app notification for user {kwargs.get('user_id')}: {e}")

    async def notify_attempt_outcome(self, db: Session, sender: NotificationSender, *, learner: User,
                                     course: Course, test: CourseTest, attempt: TestAttempt) -> bool:
        status_label = "PASSED" if attempt.is_passed else "FAILED"
        self._record_in_app(
            db,
            user_id=learner.id,
            title=f"Test Results: {test.title}",
            message=f"You scored {attempt.score}% ({attempt.correct_answers}/{attempt.total_questions}) - {status_label}",
            notification_type=NotificationTypeEnum.SUCCESS if attempt.is_passed else NotificationTypeEnum.WARNING,
            related_entity_type=RelatedEntityEnum.TEST,
            related_entity_id=test.id,
        )
        try:
            await self._deliver(
                sender,
                recipient=learner.email,
                subject=f"Test Results: {test.title} - {status_label}",
                template_name="test_result.html",
                context={"learner": learner, "course": course, "test": test, "attempt": attempt},
            )
        except NotificationError as e:
            logger.error(f"Attempt {attempt.id} outcome notification failed: {e}")
            return False
        return True

    async def notify_course_owner(self, db: Session, sender: NotificationSender, *, learner: User,
                                  course: Course, test: CourseTest, attempt: TestAttempt) -> bool:
        owner = course.owner
        if owner is None:
            logger.warning(f"Course {course.id} has no owner to alert for attempt {attempt.id}")
            return False
        self._record_in_app(
            db,
            user_id=owner.id,
            title=f"Student Test Results: {test.title}",
            message=f"{learner.full_name} scored {attempt.score}% on {test.title}",
            notification_type=NotificationTypeEnum.WARNING,
            related_entity_type=RelatedEntityEnum.TEST,
            related_entity_id=test.id,
        )
        try:
            await self._deliver(
                sender,
                recipient=owner.email,
                subject=f"Student Test Results: {learner.full_name} - {test.title}",
                template_name="owner_test_alert.html",
                context={"owner": owner, "learner": learner, "course": course, "test": test, "attempt": attempt},
            )
        except NotificationError as e:
            logger.error(f"Owner alert for attempt {attempt.id} failed: {e}")
            return False
        return True

    async def notify_certificate_issued(self, db: Session, sender: NotificationSender, *, learner: User,
                                        course: Course, certificate: Certificate) -> bool:
        self._record_in_app(
            db,
            user_id=learner.id,
            title="Certificate Issued",
            message=f"Your certificate {certificate.certificate_number} for {course.title} is ready.",
            notification_type=NotificationTypeEnum.SUCCESS,
            related_entity_type=RelatedEntityEnum.CERTIFICATE,
            related_entity_id=certificate.id,
        )
        try:
            await self._deliver(
                sender,
                recipient=learner.email,
                subject=f"Your Certificate for {course.title} - {settings.EMAILS_FROM_NAME}",
                template_name="certificate_issued.html",
                context={"learner": learner, "course": course, "certificate": certificate},
            )
        except NotificationError as e:
            logger.error(f"Certificate {certificate.certificate_number} email failed: {e}")
            return False

        try:
            crud_certificate.mark_emailed(db, certificate=certificate)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Certificate {certificate.certificate_number} was emailed but the flag was not saved: {e}")
        return True

    async def notify_unenrolled(self, db: Session, sender: NotificationSender, *, learner: User,
                                course: Course) -> bool:
        self._record_in_app(
            db,
            user_id=learner.id,
            title=f"Unenrolled: {course.title}",
            message=f"You have been unenrolled from {course.title}. Your progress in this course was removed.",
            notification_type=NotificationTypeEnum.INFO,
            related_entity_type=RelatedEntityEnum.COURSE,
            related_entity_id=course.id,
        )
        try:
            await self._deliver(
                sender,
                recipient=learner.email,
                subject=f"Unenrollment Confirmation: {course.title}",
                template_name="unenrolled.html",
                context={"learner": learner, "course": course},
            )
        except NotificationError as e:
            logger.error(f"Unenrollment email for user {learner.id} on course {course.id} failed: {e}")
            return False
        return True

    async def notify_course_removed(self, db: Session, sender: NotificationSender, *, course: Course,
                                    learners: List[User]) -> int:
        """Tell every enrolled learner the course is gone. Returns how many emails went out."""
        delivered = 0
        for learner in learners:
            self._record_in_app(
                db,
                user_id=learner.id,
                title=f"Course Removed: {course.title}",
                message=f"The course {course.title} is no longer available.",
                notification_type=NotificationTypeEnum.WARNING,
                related_entity_type=RelatedEntityEnum.COURSE,
                related_entity_id=course.id,
            )
            try:
                await self._deliver(
                    sender,
                    recipient=learner.email,
                    subject=f"Course Removed: {course.title}",
                    template_name="course_removed.html",
                    context={"learner": learner, "course": course},
                )
            except NotificationError as e:
                logger.error(f"Course {course.id} removal email for user {learner.id} failed: {e}")
                continue
            delivered += 1
        return delivered

    async def dispatch_attempt_notifications(self, db: Session, sender: NotificationSender, *, learner: User,
                                             course: Course, test: CourseTest, attempt: TestAttempt) -> None:
        await self.notify_attempt_outcome(db, sender, learner=learner, course=course, test=test, attempt=attempt)
        if should_alert_owner(attempt):
            await self.notify_course_owner(db, sender, learner=learner, course=course, test=test, attempt=attempt)


notification_dispatcher = NotificationDispatcher()
