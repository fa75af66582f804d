import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import CERTIFICATE_XP_POINTS
from app.core.exceptions import BadRequestError, NotFoundError, PermissionDeniedError, StorageError
from app.crud.attempt import test_attempt as crud_test_attempt
from app.crud.certificate import certificate as crud_certificate
from app.models.attempt import TestAttempt
from app.models.certificate import Certificate
from app.schemas.certificate import CertificateStats, CertificateVerification
from app.schemas.user import UserContext
from app.services.email import NotificationSender
from app.services.notification_dispatcher import notification_dispatcher

logger = logging.getLogger(__name__)


def generate_certificate_number(issued_at: Optional[datetime] = None) -> str:
    issued_at = issued_at or datetime.now(timezone.utc)
    suffix = uuid.uuid4().hex[:8].upper()
    return f"{settings.CERTIFICATE_NUMBER_PREFIX}-{issued_at:%Y%m%d}-{suffix}"


def build_download_url(certificate_number: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/certificates/number/{certificate_number}/download"


class CertificateService:

    def _require_view_permission(self, current_user_context: UserContext, certificate: Certificate):
        if certificate.user_id != current_user_context.user_id and not current_user_context.is_admin:
            raise PermissionDeniedError("You don't have permission to access this certificate.")

    def issue_for_attempt(self, db: Session, attempt: TestAttempt) -> Tuple[Certificate, bool]:
        """Return the attempt's certificate, creating it if needed.

        The second element is True only when this call created the row. The
        unique constraints on the attempt id and the certificate number decide
        races: a rejected insert is followed by a re-read, and a number
        collision draws a new number.
        """
        if not attempt.is_passed:
            raise BadRequestError("Cannot generate certificate for a failed test attempt.")

        enrollment = attempt.enrollment
        for _ in range(max(1, settings.CERTIFICATE_NUMBER_MAX_RETRIES)):
            existing = crud_certificate.get_by_attempt(db, test_attempt_id=attempt.id)
            if existing:
                return existing, False

            issued_at = datetime.now(timezone.utc)
            number = generate_certificate_number(issued_at)
            certificate = Certificate(
                user_id=enrollment.user_id,
                course_id=enrollment.course_id,
                test_attempt_id=attempt.id,
                certificate_number=number,
                score=attempt.score,
                issued_at=issued_at,
                is_emailed=False,
                download_url=build_download_url(number),
            )
            if crud_certificate.try_insert(db, certificate=certificate):
                logger.info(f"Issued certificate {number} for attempt {attempt.id}")
                return crud_certificate.get(db, id=certificate.id), True

        existing = crud_certificate.get_by_attempt(db, test_attempt_id=attempt.id)
        if existing:
            return existing, False
        raise StorageError(f"Could not allocate a unique certificate number for attempt {attempt.id}.")

    async def generate_certificate(self, db: Session, *, test_attempt_id: int, send_email: bool,
                                   current_user_context: UserContext,
                                   sender: NotificationSender) -> Tuple[Certificate, bool]:
        attempt = crud_test_attempt.get(db, id=test_attempt_id)
        if not attempt:
            raise NotFoundError("Test attempt not found.")
        if attempt.enrollment.user_id != current_user_context.user_id and not current_user_context.is_admin:
            raise PermissionDeniedError("You can only request certificates for your own attempts.")

        certificate, created = self.issue_for_attempt(db, attempt)
        if created and send_email:
            await notification_dispatcher.notify_certificate_issued(
                db, sender, learner=certificate.user, course=certificate.course, certificate=certificate
            )
            db.refresh(certificate)
        return certificate, created

    async def send_certificate_email(self, db: Session, *, certificate_id: int,
                                     current_user_context: UserContext,
                                     sender: NotificationSender) -> bool:
        certificate = self.get_certificate(db, certificate_id=certificate_id, current_user_context=current_user_context)
        return await notification_dispatcher.notify_certificate_issued(
            db, sender, learner=certificate.user, course=certificate.course, certificate=certificate
        )

    def get_certificate(self, db: Session, *, certificate_id: int, current_user_context: UserContext) -> Certificate:
        certificate = crud_certificate.get(db, id=certificate_id)
        if not certificate:
            raise NotFoundError("Certificate not found.")
        self._require_view_permission(current_user_context, certificate)
        return certificate

    def get_certificate_by_number(self, db: Session, *, certificate_number: str,
                                  current_user_context: UserContext) -> Certificate:
        certificate = crud_certificate.get_by_number(db, certificate_number=certificate_number)
        if not certificate:
            raise NotFoundError("Certificate not found.")
        self._require_view_permission(current_user_context, certificate)
        return certificate

    def get_my_certificates(self, db: Session, *, current_user_context: UserContext,
                            course_id: Optional[int] = None) -> List[Certificate]:
        return crud_certificate.get_by_user(db, user_id=current_user_context.user_id, course_id=course_id)

    def get_stats(self, db: Session, *, current_user_context: UserContext) -> CertificateStats:
        total = crud_certificate.count_by_user(db, user_id=current_user_context.user_id)
        badges = 2 if total >= 3 else 1 if total >= 1 else 0
        return CertificateStats(
            total_certificates=total,
            xp_points=total * CERTIFICATE_XP_POINTS,
            badges_earned=badges,
        )

    def verify(self, db: Session, *, certificate_number: str) -> CertificateVerification:
        certificate = crud_certificate.get_by_number(db, certificate_number=certificate_number)
        if not certificate:
            return CertificateVerification(valid=False)
        return CertificateVerification(
            valid=True,
            certificate_number=certificate.certificate_number,
            user_name=certificate.user_name,
            course_title=certificate.course_title,
            issued_at=certificate.issued_at,
            score=certificate.score,
        )


certificate_service = CertificateService()
