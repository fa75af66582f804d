import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.exceptions import StorageError
from app.crud.base import CRUDBase
from app.models.attempt import TestAttempt
from app.models.user_answer import UserAnswer
from app.schemas.attempt import GradingResult, TestAttempt as TestAttemptSchema

logger = logging.getLogger(__name__)

class CRUDTestAttempt(CRUDBase[TestAttempt, TestAttemptSchema, TestAttemptSchema]):

    def _query_with_relationships(self, db: Session):
        return db.query(TestAttempt).options(
            selectinload(TestAttempt.enrollment),
            selectinload(TestAttempt.test),
            selectinload(TestAttempt.user_answers),
        )

    def get(self, db: Session, id: int) -> Optional[TestAttempt]:
        return self._query_with_relationships(db).filter(TestAttempt.id == id).first()

    def get_by_enrollment(self, db: Session, *, enrollment_id: int, skip: int = 0, limit: int = 100) -> List[TestAttempt]:
        return (
            self._query_with_relationships(db)
            .filter(TestAttempt.enrollment_id == enrollment_id)
            .order_by(TestAttempt.attempted_at.desc(), TestAttempt.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_by_enrollment_and_test(self, db: Session, *, enrollment_id: int, test_id: int) -> List[TestAttempt]:
        return (
            self._query_with_relationships(db)
            .filter(TestAttempt.enrollment_id == enrollment_id)
            .filter(TestAttempt.test_id == test_id)
            .order_by(TestAttempt.attempted_at.desc(), TestAttempt.id.desc())
            .all()
        )

    def create_with_answers(self, db: Session, *, enrollment_id: int, test_id: int, result: GradingResult) -> TestAttempt:
        """Insert the attempt and its answer rows as one unit of work and commit."""
        attempt = TestAttempt(
            enrollment_id=enrollment_id,
            test_id=test_id,
            attempted_at=datetime.now(timezone.utc),
            score=result.score,
            is_passed=result.is_passed,
            total_questions=result.total_questions,
            correct_answers=result.correct_answers,
        )
        attempt.user_answers = [
            UserAnswer(
                question_id=answer.question_id,
                selected_option_id=answer.selected_option_id,
                is_correct=answer.is_correct,
            )
            for answer in result.answers
        ]
        try:
            db.add(attempt)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to record attempt for enrollment {enrollment_id}, test {test_id}: {e}", exc_info=True)
            raise StorageError() from e
        db.refresh(attempt)
        return attempt

test_attempt = CRUDTestAttempt(TestAttempt)
