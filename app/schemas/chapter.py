from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime

class ChapterBase(BaseModel):
    title: str = Field(max_length=200)
    content: str
    media_url: Optional[str] = Field(default=None, max_length=500)
    media_type: Optional[str] = Field(default=None, max_length=50)

    @field_validator("title", "content")
    def not_blank(cls, v, info):
        if not v or not v.strip():
            raise ValueError(f"{info.field_name.title()} is required")
        return v.strip()

class ChapterCreate(ChapterBase):
    order: Optional[int] = Field(default=None, ge=0)

class ChapterUpdate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    content: Optional[str] = None
    order: Optional[int] = Field(default=None, ge=0)
    media_url: Optional[str] = Field(default=None, max_length=500)
    media_type: Optional[str] = Field(default=None, max_length=50)

    @field_validator("title", "content")
    def not_blank(cls, v, info):
        if v is not None and not v.strip():
            raise ValueError(f"{info.field_name.title()} cannot be empty")
        return v.strip() if v is not None else v

class Chapter(ChapterBase):
    id: int
    course_id: int
    order: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class ChapterCompletion(BaseModel):
    time_spent_seconds: int = Field(default=0, ge=0)

class ChapterProgress(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    enrollment_id: int
    chapter_id: int
    is_completed: bool
    completed_at: Optional[datetime] = None
    time_spent_seconds: int
