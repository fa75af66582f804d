import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.crud.base import CRUDBase
from app.models.certificate import Certificate
from app.schemas.certificate import Certificate as CertificateSchema

logger = logging.getLogger(__name__)

class CRUDCertificate(CRUDBase[Certificate, CertificateSchema, CertificateSchema]):

    def _query_with_relationships(self, db: Session):
        return db.query(Certificate).options(
            selectinload(Certificate.user),
            selectinload(Certificate.course),
        )

    def get(self, db: Session, id: int) -> Optional[Certificate]:
        return self._query_with_relationships(db).filter(Certificate.id == id).first()

    def get_by_attempt(self, db: Session, *, test_attempt_id: int) -> Optional[Certificate]:
        return self._query_with_relationships(db).filter(Certificate.test_attempt_id == test_attempt_id).first()

    def get_by_number(self, db: Session, *, certificate_number: str) -> Optional[Certificate]:
        return self._query_with_relationships(db).filter(Certificate.certificate_number == certificate_number).first()

    def get_by_user(self, db: Session, *, user_id: int, course_id: Optional[int] = None) -> List[Certificate]:
        query = self._query_with_relationships(db).filter(Certificate.user_id == user_id)
        if course_id is not None:
            query = query.filter(Certificate.course_id == course_id)
        return query.order_by(Certificate.issued_at.desc(), Certificate.id.desc()).all()

    def count_by_user(self, db: Session, *, user_id: int) -> int:
        return db.query(Certificate).filter(Certificate.user_id == user_id).count()

    def try_insert(self, db: Session, *, certificate: Certificate) -> bool:
        """Insert and commit, or roll back and report False on a unique-constraint hit."""
        db.add(certificate)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Certificate insert for attempt {certificate.test_attempt_id} rejected: {e.orig}")
            return False
        db.refresh(certificate)
        return True

    def mark_emailed(self, db: Session, *, certificate: Certificate) -> Certificate:
        certificate.is_emailed = True
        certificate.emailed_at = datetime.now(timezone.utc)
        db.add(certificate)
        db.commit()
        db.refresh(certificate)
        return certificate

certificate = CRUDCertificate(Certificate)
