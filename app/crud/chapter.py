from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.chapter import Chapter
from app.schemas.chapter import ChapterCreate, ChapterUpdate

class CRUDChapter(CRUDBase[Chapter, ChapterCreate, ChapterUpdate]):

    def get(self, db: Session, id: int) -> Optional[Chapter]:
        return db.query(Chapter).options(selectinload(Chapter.course)).filter(Chapter.id == id).first()

    def get_by_course(self, db: Session, *, course_id: int) -> List[Chapter]:
        return db.query(Chapter).filter(Chapter.course_id == course_id).order_by(Chapter.order, Chapter.id).all()

    def get_in_course(self, db: Session, *, course_id: int, chapter_id: int) -> Optional[Chapter]:
        return (
            db.query(Chapter)
            .options(selectinload(Chapter.course))
            .filter(Chapter.id == chapter_id)
            .filter(Chapter.course_id == course_id)
            .first()
        )

    def next_order(self, db: Session, *, course_id: int) -> int:
        current = db.query(func.max(Chapter.order)).filter(Chapter.course_id == course_id).scalar()
        return 1 if current is None else current + 1

chapter = CRUDChapter(Chapter)
