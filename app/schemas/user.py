from pydantic import BaseModel, EmailStr, ConfigDict
from typing import Optional
from datetime import datetime

from app.core.constants import RoleEnum

class UserBase(BaseModel):
    """Base user schema with common fields."""
    full_name: str
    email: EmailStr

class User(UserBase):
    """Main user schema for reading user data."""
    id: int
    role: RoleEnum
    is_active: bool
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)

class UserContext(BaseModel):
    """The authenticated caller, passed explicitly into every service call."""
    user: User
    model_config = ConfigDict(from_attributes=True)

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def is_admin(self) -> bool:
        return self.user.role == RoleEnum.ADMIN

    @property
    def is_instructor(self) -> bool:
        return self.user.role == RoleEnum.INSTRUCTOR
