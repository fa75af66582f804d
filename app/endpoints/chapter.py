from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.chapter import Chapter, ChapterCompletion, ChapterCreate, ChapterProgress, ChapterUpdate
from app.schemas.response import APIResponse
from app.schemas.user import UserContext
from app.services.chapter import chapter_service
from app.utils import deps

router = APIRouter()


@router.post("/{course_id}/chapters", response_model=APIResponse[Chapter], status_code=status.HTTP_201_CREATED)
def create_chapter(
    course_id: int,
    chapter_in: ChapterCreate,
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    chapter = chapter_service.create_chapter(db, course_id=course_id, chapter_in=chapter_in, current_user_context=context)
    return APIResponse(message="Chapter created successfully", data=Chapter.model_validate(chapter))


@router.get("/{course_id}/chapters", response_model=APIResponse[List[Chapter]])
def get_chapters(
    course_id: int,
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    chapters = chapter_service.get_chapters(db, course_id=course_id, current_user_context=context)
    return APIResponse(message="Chapters retrieved successfully", data=[Chapter.model_validate(c) for c in chapters])


@router.get("/{course_id}/chapter-progress", response_model=APIResponse[List[ChapterProgress]])
def get_my_chapter_progress(
    course_id: int,
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    progress = chapter_service.get_my_progress(db, course_id=course_id, current_user_context=context)
    return APIResponse(
        message="Chapter progress retrieved successfully",
        data=[ChapterProgress.model_validate(p) for p in progress]
    )


@router.get("/{course_id}/chapters/{chapter_id}", response_model=APIResponse[Chapter])
def get_chapter(
    course_id: int,
    chapter_id: int,
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    chapter = chapter_service.get_chapter(db, course_id=course_id, chapter_id=chapter_id, current_user_context=context)
    return APIResponse(message="Chapter retrieved successfully", data=Chapter.model_validate(chapter))


@router.put("/{course_id}/chapters/{chapter_id}", response_model=APIResponse[Chapter])
def update_chapter(
    course_id: int,
    chapter_id: int,
    chapter_in: ChapterUpdate,
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    chapter = chapter_service.update_chapter(
        db, course_id=course_id, chapter_id=chapter_id, chapter_in=chapter_in, current_user_context=context
    )
    return APIResponse(message="Chapter updated successfully", data=Chapter.model_validate(chapter))


@router.delete("/{course_id}/chapters/{chapter_id}", response_model=APIResponse)
def delete_chapter(
    course_id: int,
    chapter_id: int,
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    chapter_service.delete_chapter(db, course_id=course_id, chapter_id=chapter_id, current_user_context=context)
    return APIResponse(message="Chapter deleted successfully")


@router.post("/{course_id}/chapters/{chapter_id}/complete", response_model=APIResponse[ChapterProgress])
def complete_chapter(
    course_id: int,
    chapter_id: int,
    completion: ChapterCompletion,
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    progress = chapter_service.complete_chapter(
        db, course_id=course_id, chapter_id=chapter_id, completion=completion, current_user_context=context
    )
    return APIResponse(message="Chapter marked as complete", data=ChapterProgress.model_validate(progress))
