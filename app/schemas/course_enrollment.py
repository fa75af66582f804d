from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class CourseEnrollment(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    course_id: int
    course_title: Optional[str] = None
    enrolled_at: Optional[datetime] = None
    is_completed: bool
    completed_at: Optional[datetime] = None
    completed_chapters: int = 0
    total_chapters: int = 0
    progress_percentage: int = 0
