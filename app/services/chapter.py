import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, PermissionDeniedError
from app.crud.chapter import chapter as crud_chapter
from app.crud.chapter_progress import chapter_progress as crud_chapter_progress
from app.crud.course_enrollment import course_enrollment as crud_enrollment
from app.models.chapter import Chapter
from app.models.chapter_progress import ChapterProgress
from app.models.course import Course
from app.schemas.chapter import ChapterCompletion, ChapterCreate, ChapterUpdate
from app.schemas.user import UserContext
from app.services.course import course_service

logger = logging.getLogger(__name__)


class ChapterService:

    def _require_view_permission(self, db: Session, current_user_context: UserContext, course: Course):
        if course_service.can_manage(current_user_context, course):
            return
        enrollment = crud_enrollment.get_by_user_and_course(
            db, user_id=current_user_context.user_id, course_id=course.id
        )
        if not enrollment:
            raise PermissionDeniedError("You must be enrolled in the course to view its chapters.")

    def _get_chapter_or_404(self, db: Session, course_id: int, chapter_id: int) -> Chapter:
        chapter = crud_chapter.get_in_course(db, course_id=course_id, chapter_id=chapter_id)
        if not chapter:
            raise NotFoundError("Chapter not found.")
        return chapter

    def create_chapter(self, db: Session, *, course_id: int, chapter_in: ChapterCreate,
                       current_user_context: UserContext) -> Chapter:
        course = course_service.get_active_course_or_404(db, course_id)
        course_service.require_course_management(current_user_context, course)

        data = chapter_in.model_dump()
        if data["order"] is None:
            data["order"] = crud_chapter.next_order(db, course_id=course.id)
        chapter = crud_chapter.create(db, obj_in={**data, "course_id": course.id})
        logger.info(f"Chapter {chapter.id} added to course {course.id}")
        return chapter

    def get_chapters(self, db: Session, *, course_id: int, current_user_context: UserContext) -> List[Chapter]:
        course = course_service.get_course(db, course_id=course_id, current_user_context=current_user_context)
        self._require_view_permission(db, current_user_context, course)
        return crud_chapter.get_by_course(db, course_id=course.id)

    def get_chapter(self, db: Session, *, course_id: int, chapter_id: int,
                    current_user_context: UserContext) -> Chapter:
        course = course_service.get_course(db, course_id=course_id, current_user_context=current_user_context)
        self._require_view_permission(db, current_user_context, course)
        return self._get_chapter_or_404(db, course.id, chapter_id)

    def update_chapter(self, db: Session, *, course_id: int, chapter_id: int, chapter_in: ChapterUpdate,
                       current_user_context: UserContext) -> Chapter:
        chapter = self._get_chapter_or_404(db, course_id, chapter_id)
        course_service.require_course_management(current_user_context, chapter.course)
        return crud_chapter.update(db, db_obj=chapter, obj_in=chapter_in)

    def delete_chapter(self, db: Session, *, course_id: int, chapter_id: int,
                       current_user_context: UserContext) -> None:
        chapter = self._get_chapter_or_404(db, course_id, chapter_id)
        course_service.require_course_management(current_user_context, chapter.course)
        crud_chapter.delete(db, db_obj=chapter)
        logger.info(f"Chapter {chapter_id} removed from course {course_id}")

    def complete_chapter(self, db: Session, *, course_id: int, chapter_id: int, completion: ChapterCompletion,
                         current_user_context: UserContext) -> ChapterProgress:
        """Mark a chapter complete for the caller. Repeating the call refreshes the time spent."""
        chapter = self._get_chapter_or_404(db, course_id, chapter_id)
        enrollment = course_service.get_my_enrollment(
            db, course_id=chapter.course_id, current_user_context=current_user_context
        )

        progress = crud_chapter_progress.get_by_enrollment_and_chapter(
            db, enrollment_id=enrollment.id, chapter_id=chapter.id
        )
        if progress is None:
            try:
                progress = crud_chapter_progress.create(db, obj_in={
                    "enrollment_id": enrollment.id,
                    "chapter_id": chapter.id,
                    "is_completed": True,
                    "completed_at": datetime.now(timezone.utc),
                    "time_spent_seconds": completion.time_spent_seconds,
                })
                return progress
            except IntegrityError:
                db.rollback()
                progress = crud_chapter_progress.get_by_enrollment_and_chapter(
                    db, enrollment_id=enrollment.id, chapter_id=chapter.id
                )

        update_data = {"time_spent_seconds": completion.time_spent_seconds}
        if not progress.is_completed:
            update_data.update(is_completed=True, completed_at=datetime.now(timezone.utc))
        return crud_chapter_progress.update(db, db_obj=progress, obj_in=update_data)

    def get_my_progress(self, db: Session, *, course_id: int, current_user_context: UserContext) -> List[ChapterProgress]:
        enrollment = course_service.get_my_enrollment(db, course_id=course_id, current_user_context=current_user_context)
        return crud_chapter_progress.get_all_by_enrollment(db, enrollment_id=enrollment.id)


chapter_service = ChapterService()
