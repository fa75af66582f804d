from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.attempt import TestAttemptDetails
from app.schemas.course import Course, CourseCreate, CourseUpdate
from app.schemas.course_enrollment import CourseEnrollment
from app.schemas.response import APIResponse
from app.schemas.user import UserContext
from app.services.course import course_service
from app.services.email import NotificationSender
from app.utils import deps

router = APIRouter()


@router.post("", response_model=APIResponse[Course], status_code=status.HTTP_201_CREATED)
def create_course(
    *,
    db: Session = Depends(get_db),
    course_in: CourseCreate,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    new_course = course_service.create_course(db, course_in=course_in, current_user_context=context)
    return APIResponse(message="Course created successfully", data=Course.model_validate(new_course))


@router.get("", response_model=APIResponse[List[Course]])
def read_courses(
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context),
    skip: int = 0,
    limit: int = 100
):
    courses = course_service.get_courses(db, skip=skip, limit=limit)
    return APIResponse(message="Courses retrieved successfully", data=[Course.model_validate(c) for c in courses])


@router.get("/my-enrollments", response_model=APIResponse[List[CourseEnrollment]])
def get_my_enrollments(
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    """The caller's enrollments with chapter progress."""
    enrollments = course_service.get_my_enrollments(db, current_user_context=context)
    return APIResponse(
        message="Enrollments retrieved successfully",
        data=[CourseEnrollment.model_validate(e) for e in enrollments]
    )


@router.get("/my-courses", response_model=APIResponse[List[Course]])
def get_my_courses(
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    courses = course_service.get_my_courses(db, current_user_context=context)
    return APIResponse(message="Courses retrieved successfully", data=[Course.model_validate(c) for c in courses])


@router.get("/{course_id}", response_model=APIResponse[Course])
def read_course(
    *,
    db: Session = Depends(get_db),
    course_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    course = course_service.get_course(db, course_id=course_id, current_user_context=context)
    return APIResponse(message="Course retrieved successfully", data=Course.model_validate(course))


@router.put("/{course_id}", response_model=APIResponse[Course])
def update_course(
    *,
    db: Session = Depends(get_db),
    course_id: int,
    course_in: CourseUpdate,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    course = course_service.update_course(db, course_id=course_id, course_in=course_in, current_user_context=context)
    return APIResponse(message="Course updated successfully", data=Course.model_validate(course))


@router.delete("/{course_id}", response_model=APIResponse)
async def delete_course(
    *,
    db: Session = Depends(get_db),
    course_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context),
    sender: NotificationSender = Depends(deps.get_notification_sender)
):
    await course_service.delete_course(db, course_id=course_id, current_user_context=context, sender=sender)
    return APIResponse(message="Course deleted successfully")


@router.post("/{course_id}/enroll", response_model=APIResponse[CourseEnrollment], status_code=status.HTTP_201_CREATED)
def enroll_in_course(
    *,
    db: Session = Depends(get_db),
    course_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    enrollment = course_service.enroll(db, course_id=course_id, current_user_context=context)
    return APIResponse(message="Enrolled successfully", data=CourseEnrollment.model_validate(enrollment))


@router.post("/{course_id}/unenroll", response_model=APIResponse)
async def unenroll_from_course(
    *,
    db: Session = Depends(get_db),
    course_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context),
    sender: NotificationSender = Depends(deps.get_notification_sender)
):
    await course_service.unenroll(db, course_id=course_id, current_user_context=context, sender=sender)
    return APIResponse(message="Unenrolled successfully")


@router.get("/{course_id}/enrollment", response_model=APIResponse[CourseEnrollment])
def get_my_enrollment(
    *,
    db: Session = Depends(get_db),
    course_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    enrollment = course_service.get_my_enrollment(db, course_id=course_id, current_user_context=context)
    return APIResponse(message="Enrollment retrieved successfully", data=CourseEnrollment.model_validate(enrollment))


@router.get("/{course_id}/test-attempts", response_model=APIResponse[List[TestAttemptDetails]])
def get_my_test_attempts(
    *,
    db: Session = Depends(get_db),
    course_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    """Every attempt the caller has made on this course's tests, newest first."""
    attempts = course_service.get_my_test_attempts(db, course_id=course_id, current_user_context=context)
    return APIResponse(
        message="Test attempts retrieved successfully",
        data=[TestAttemptDetails.model_validate(a) for a in attempts]
    )
