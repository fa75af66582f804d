from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime

class CourseBase(BaseModel):
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    estimated_duration: int = Field(default=0, ge=0) # minutes

    @field_validator("title")
    def title_not_empty(cls, v):
        if not v or not v.strip():
            raise ValueError("Course title cannot be empty")
        return v.strip()

class CourseCreate(CourseBase):
    pass

class CourseUpdate(CourseBase):
    title: Optional[str] = None
    estimated_duration: Optional[int] = Field(default=None, ge=0)

    @field_validator("title")
    def title_not_empty(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Course title cannot be empty")
        return v.strip() if v is not None else v

class Course(CourseBase):
    id: int
    owner_id: int
    owner_name: Optional[str] = None
    is_active: bool
    chapter_count: int = 0
    enrollment_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
