from sqlalchemy.orm import Session
from typing import List

from app.core.constants import NotificationTypeEnum, RelatedEntityEnum
from app.core.exceptions import NotFoundError
from app.crud.notification import notification as crud_notification
from app.models.notification import Notification
from app.schemas.notification import NotificationCreate

class NotificationService:
    def create_notification(
        self,
        db: Session,
        *,
        user_id: int,
        title: str,
        message: str,
        notification_type: NotificationTypeEnum = NotificationTypeEnum.INFO,
        related_entity_type: RelatedEntityEnum | None = None,
        related_entity_id: int | None = None,
    ) -> Notification:
        notification_in = NotificationCreate(
            user_id=user_id,
            title=title,
            message=message,
            notification_type=notification_type,
            related_entity_type=related_entity_type,
            related_entity_id=related_entity_id,
        )
        return crud_notification.create(db, obj_in=notification_in)

    def get_user_notifications(self, db: Session, *, user_id: int, skip: int = 0, limit: int = 100) -> List[Notification]:
        return crud_notification.get_for_user(db, user_id=user_id, skip=skip, limit=limit)

    def get_unread_count(self, db: Session, *, user_id: int) -> int:
        return crud_notification.count_unread_for_user(db, user_id=user_id)

    def mark_notification_as_read(self, db: Session, *, notification_id: int, user_id: int) -> Notification:
        notification = crud_notification.get(db, id=notification_id)
        if not notification or notification.user_id != user_id:
            raise NotFoundError("Notification not found.")
        return crud_notification.mark_as_read(db, notification=notification)

    def mark_all_notifications_as_read(self, db: Session, *, user_id: int) -> int:
        return crud_notification.mark_all_as_read(db, user_id=user_id)

notification_service = NotificationService()
