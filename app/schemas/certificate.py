from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

class CertificateGenerate(BaseModel):
    test_attempt_id: int
    send_email: bool = True

class Certificate(BaseModel):
    id: int
    user_id: int
    course_id: int
    test_attempt_id: int
    user_name: Optional[str] = None
    course_title: Optional[str] = None
    certificate_number: str
    issued_at: datetime
    score: int
    download_url: Optional[str] = None
    is_emailed: bool
    emailed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class CertificateDownload(BaseModel):
    """Data the frontend needs to render the printable certificate."""
    user_name: Optional[str] = None
    course_title: Optional[str] = None
    score: int
    certificate_number: str
    issued_at: datetime

    model_config = ConfigDict(from_attributes=True)

class CertificateVerification(BaseModel):
    valid: bool
    certificate_number: Optional[str] = None
    user_name: Optional[str] = None
    course_title: Optional[str] = None
    issued_at: Optional[datetime] = None
    score: Optional[int] = None

class CertificateStats(BaseModel):
    total_certificates: int
    xp_points: int
    badges_earned: int

class CertificateEmailResult(BaseModel):
    certificate_id: int
    delivered: bool
