from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime

class AnswerSubmission(BaseModel):
    question_id: int
    selected_option_id: Optional[int] = None

class TestSubmission(BaseModel):
    answers: List[AnswerSubmission] = Field(default_factory=list)

    @field_validator("answers")
    def no_duplicate_questions(cls, v):
        question_ids = [answer.question_id for answer in v]
        if len(question_ids) != len(set(question_ids)):
            raise ValueError("Duplicate question_id found in submission.")
        return v

class UserAnswer(BaseModel):
    id: int
    question_id: int
    selected_option_id: Optional[int] = None
    is_correct: bool

    model_config = ConfigDict(from_attributes=True)

class TestAttempt(BaseModel):
    id: int
    enrollment_id: int
    test_id: int
    score: int
    is_passed: bool
    total_questions: int
    correct_answers: int
    attempted_at: datetime

    model_config = ConfigDict(from_attributes=True)

class TestAttemptDetails(TestAttempt):
    user_answers: List[UserAnswer] = []

class TestResult(BaseModel):
    """Outcome returned to the learner after a submission."""

    attempt_id: int
    score: int
    is_passed: bool
    correct_answers: int
    total_questions: int
    message: str
    attempted_at: datetime
    certificate_number: Optional[str] = None

class GradedAnswer(BaseModel):
    """One graded answer, not yet persisted."""
    question_id: int
    selected_option_id: Optional[int] = None
    is_correct: bool = False

class GradingResult(BaseModel):
    answers: List[GradedAnswer] = []
    score: int
    correct_answers: int
    total_questions: int
    is_passed: bool
