from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.core.database import get_db
from app.schemas.response import APIResponse
from app.schemas.notification import Notification
from app.schemas.user import UserContext
from app.services.notification import notification_service
from app.utils import deps

router = APIRouter()

@router.get("", response_model=APIResponse[List[Notification]])
def get_my_notifications(
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context),
    skip: int = 0,
    limit: int = 100
):
    """Retrieve notifications for the current user."""
    data = notification_service.get_user_notifications(db, user_id=context.user_id, skip=skip, limit=limit)
    return APIResponse(message="Notifications fetched successfully", data=[Notification.model_validate(n) for n in data])

@router.get("/unread_count", response_model=APIResponse[int])
def get_unread_notifications_count(
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    count = notification_service.get_unread_count(db, user_id=context.user_id)
    return APIResponse(message="Unread notifications count fetched successfully", data=count)

@router.post("/{notification_id}/read", response_model=APIResponse[Notification])
def mark_notification_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    notification = notification_service.mark_notification_as_read(db, notification_id=notification_id, user_id=context.user_id)
    return APIResponse(message="Notification marked as read", data=Notification.model_validate(notification))

@router.post("/mark_all_read", response_model=APIResponse[int])
def mark_all_notifications_as_read(
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    """Mark all unread notifications for the current user as read."""
    updated = notification_service.mark_all_notifications_as_read(db, user_id=context.user_id)
    return APIResponse(message="All notifications marked as read", data=updated)
