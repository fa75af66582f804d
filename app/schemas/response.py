from pydantic import BaseModel, Field
from typing import Generic, TypeVar, Optional, Any, Dict

DataType = TypeVar("DataType")

class APIResponse(BaseModel, Generic[DataType]):
    """Success envelope shared by every endpoint."""
    message: str = Field(..., description="Short human-readable outcome, e.g. the test result sentence.")
    data: Optional[DataType] = Field(None, description="Payload; may be null for actions without a result.")

class ErrorDetail(BaseModel):
    code: str = Field(..., description="Stable machine-readable code such as NOT_FOUND or STORAGE_ERROR")
    message: str = Field(..., description="Message safe to show to the learner")
    details: Optional[Dict[str, Any]] = Field(None, description="Extra context, e.g. validation errors")

class ErrorResponse(BaseModel):
    """Error envelope produced by the handlers in app.middleware.exceptions."""
    error: ErrorDetail
    timestamp: str = Field(..., description="UTC ISO 8601 time the error was produced")
    path: str = Field(..., description="Request URL")
    request_id: Optional[str] = Field(None, description="Matches the X-Request-ID response header")
