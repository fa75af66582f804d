from sqlalchemy.orm import Session
from typing import List
from datetime import datetime, timezone

from app.crud.base import CRUDBase
from app.models.notification import Notification
from app.schemas.notification import NotificationCreate

class CRUDNotification(CRUDBase[Notification, NotificationCreate, NotificationCreate]):
    """CRUD operations for Notifications."""

    def get_for_user(self, db: Session, *, user_id: int, skip: int = 0, limit: int = 100) -> List[Notification]:
        return (
            db.query(self.model)
            .filter(self.model.user_id == user_id)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_unread_for_user(self, db: Session, *, user_id: int) -> int:
        return db.query(self.model).filter(self.model.user_id == user_id, self.model.is_read == False).count()

    def mark_as_read(self, db: Session, *, notification: Notification) -> Notification:
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(timezone.utc)
            db.add(notification)
            db.commit()
            db.refresh(notification)
        return notification

    def mark_all_as_read(self, db: Session, *, user_id: int) -> int:
        updated = (
            db.query(self.model)
            .filter(self.model.user_id == user_id, self.model.is_read == False)
            .update({"is_read": True, "read_at": datetime.now(timezone.utc)}, synchronize_session=False)
        )
        db.commit()
        return updated

notification = CRUDNotification(Notification)
