from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional

from app.core.constants import NotificationTypeEnum, RelatedEntityEnum

class NotificationBase(BaseModel):
    """Base schema for a notification."""
    title: str
    message: str
    notification_type: NotificationTypeEnum = NotificationTypeEnum.INFO
    related_entity_type: Optional[RelatedEntityEnum] = None
    related_entity_id: Optional[int] = None

    model_config = ConfigDict(use_enum_values=True)

class NotificationCreate(NotificationBase):
    """Schema for creating a notification."""
    user_id: int

class Notification(NotificationBase):
    """Schema for reading a notification, includes ID and status."""
    id: int
    user_id: int
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)
