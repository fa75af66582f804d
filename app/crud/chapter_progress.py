from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.chapter_progress import ChapterProgress
from app.schemas.chapter import ChapterProgress as ChapterProgressSchema

class CRUDChapterProgress(CRUDBase[ChapterProgress, ChapterProgressSchema, ChapterProgressSchema]):

    def _query_with_relationships(self, db: Session):
        return db.query(ChapterProgress).options(
            selectinload(ChapterProgress.enrollment),
            selectinload(ChapterProgress.chapter),
        )

    def get_by_enrollment_and_chapter(self, db: Session, *, enrollment_id: int, chapter_id: int) -> Optional[ChapterProgress]:
        return (
            self._query_with_relationships(db)
            .filter(ChapterProgress.enrollment_id == enrollment_id)
            .filter(ChapterProgress.chapter_id == chapter_id)
            .first()
        )

    def get_all_by_enrollment(self, db: Session, *, enrollment_id: int) -> List[ChapterProgress]:
        return (
            self._query_with_relationships(db)
            .filter(ChapterProgress.enrollment_id == enrollment_id)
            .order_by(ChapterProgress.chapter_id)
            .all()
        )

chapter_progress = CRUDChapterProgress(ChapterProgress)
