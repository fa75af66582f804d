import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.core.decorators import best_effort
from app.core.exceptions import NotFoundError, PermissionDeniedError
from app.crud.attempt import test_attempt as crud_test_attempt
from app.crud.course_enrollment import course_enrollment as crud_enrollment
from app.crud.course_test import course_test as crud_course_test
from app.models.attempt import TestAttempt
from app.models.certificate import Certificate
from app.models.course_enrollment import CourseEnrollment
from app.models.course_test import CourseTest
from app.schemas.attempt import TestResult, TestSubmission
from app.schemas.user import UserContext
from app.services.certificate import certificate_service
from app.services.email import NotificationSender
from app.services.grading import grade_submission
from app.services.notification_dispatcher import notification_dispatcher

logger = logging.getLogger(__name__)


def build_result_message(score: int, is_passed: bool, passing_score: int) -> str:
    if is_passed:
        return f"Congratulations! You passed the test with a score of {score}%."
    return f"You scored {score}% but didn't pass. The passing score is {passing_score}%."


class TestSubmissionService:
    """Grades a submission, records it, then runs the side-effect stages.

    Grading and recording decide the response. Certificate issuance,
    enrollment completion and notifications are best-effort: a failure in
    any of them is logged and the learner still gets their result.
    """
    __test__ = False

    @best_effort("certificate")
    async def _issue_certificate(self, db: Session, sender: NotificationSender, *,
                                 enrollment: CourseEnrollment, attempt: TestAttempt) -> Optional[Certificate]:
        certificate, created = certificate_service.issue_for_attempt(db, attempt)
        if created:
            await notification_dispatcher.notify_certificate_issued(
                db, sender, learner=enrollment.user, course=enrollment.course, certificate=certificate
            )
        return certificate

    @best_effort("enrollment_completion")
    async def _complete_enrollment(self, db: Session, *, enrollment: CourseEnrollment) -> CourseEnrollment:
        return crud_enrollment.mark_completed(db, enrollment=enrollment)

    @best_effort("notifications")
    async def _notify(self, db: Session, sender: NotificationSender, *, enrollment: CourseEnrollment,
                      test: CourseTest, attempt: TestAttempt) -> None:
        await notification_dispatcher.dispatch_attempt_notifications(
            db, sender, learner=enrollment.user, course=enrollment.course, test=test, attempt=attempt
        )

    async def submit(self, db: Session, *, test_id: int, submission: TestSubmission,
                     current_user_context: UserContext, sender: NotificationSender) -> TestResult:
        test = crud_course_test.get(db, id=test_id)
        if not test:
            raise NotFoundError("Test not found.")

        enrollment = crud_enrollment.get_by_user_and_course(
            db, user_id=current_user_context.user_id, course_id=test.course_id
        )
        if not enrollment:
            raise PermissionDeniedError("You must be enrolled in the course to take the test.")

        result = grade_submission(test, submission.answers)
        attempt = crud_test_attempt.create_with_answers(
            db, enrollment_id=enrollment.id, test_id=test.id, result=result
        )
        logger.info(
            f"User {current_user_context.user_id} scored {attempt.score}% on test {test.id} "
            f"(attempt {attempt.id}, passed={attempt.is_passed})"
        )

        # Plain values first; later stages may roll back and expire the session.
        response = {
            "attempt_id": attempt.id,
            "score": attempt.score,
            "is_passed": attempt.is_passed,
            "correct_answers": attempt.correct_answers,
            "total_questions": attempt.total_questions,
            "attempted_at": attempt.attempted_at,
            "message": build_result_message(attempt.score, attempt.is_passed, test.passing_score),
        }

        certificate_number = None
        if attempt.is_passed:
            certificate = await self._issue_certificate(db, sender, enrollment=enrollment, attempt=attempt)
            if certificate is not None:
                certificate_number = certificate.certificate_number
            await self._complete_enrollment(db, enrollment=enrollment)

        await self._notify(db, sender, enrollment=enrollment, test=test, attempt=attempt)

        return TestResult(**response, certificate_number=certificate_number)


test_submission_service = TestSubmissionService()
