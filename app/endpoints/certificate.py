from typing import List, Optional
from fastapi import APIRouter, Depends, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.certificate import (
    Certificate,
    CertificateDownload,
    CertificateEmailResult,
    CertificateGenerate,
    CertificateStats,
    CertificateVerification,
)
from app.schemas.response import APIResponse
from app.schemas.user import UserContext
from app.services.certificate import certificate_service
from app.services.email import NotificationSender
from app.utils import deps

router = APIRouter()


@router.get("/me", response_model=APIResponse[List[Certificate]])
def get_my_certificates(
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    certificates = certificate_service.get_my_certificates(db, current_user_context=context)
    return APIResponse(message="Certificates retrieved successfully", data=[Certificate.model_validate(c) for c in certificates])


@router.get("/stats", response_model=APIResponse[CertificateStats])
def get_certificate_stats(
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    stats = certificate_service.get_stats(db, current_user_context=context)
    return APIResponse(message="Certificate stats retrieved successfully", data=stats)


@router.get("/verify/{certificate_number}", response_model=APIResponse[CertificateVerification])
def verify_certificate(
    certificate_number: str,
    db: Session = Depends(get_db)
):
    """Public lookup by certificate number. No authentication required."""
    verification = certificate_service.verify(db, certificate_number=certificate_number)
    if not verification.valid:
        body = APIResponse(message="Certificate not found", data=verification)
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=jsonable_encoder(body))
    return APIResponse(message="Certificate is valid", data=verification)


@router.get("/course/{course_id}", response_model=APIResponse[List[Certificate]])
def get_certificates_for_course(
    course_id: int,
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    certificates = certificate_service.get_my_certificates(db, current_user_context=context, course_id=course_id)
    return APIResponse(message="Certificates retrieved successfully", data=[Certificate.model_validate(c) for c in certificates])


@router.get("/number/{certificate_number}/download", response_model=APIResponse[CertificateDownload])
def download_certificate_by_number(
    certificate_number: str,
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    """Target of the ``download_url`` stored on each certificate."""
    certificate = certificate_service.get_certificate_by_number(
        db, certificate_number=certificate_number, current_user_context=context
    )
    return APIResponse(message="Certificate download data retrieved successfully", data=CertificateDownload.model_validate(certificate))


@router.post("/generate", response_model=APIResponse[Certificate])
async def generate_certificate(
    request_in: CertificateGenerate,
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context),
    sender: NotificationSender = Depends(deps.get_notification_sender)
):
    certificate, created = await certificate_service.generate_certificate(
        db,
        test_attempt_id=request_in.test_attempt_id,
        send_email=request_in.send_email,
        current_user_context=context,
        sender=sender,
    )
    data = Certificate.model_validate(certificate)
    if created:
        body = APIResponse(message="Certificate generated successfully", data=data)
        return JSONResponse(status_code=status.HTTP_201_CREATED, content=jsonable_encoder(body))
    return APIResponse(message="Certificate already exists for this attempt", data=data)


@router.get("/{certificate_id}", response_model=APIResponse[Certificate])
def get_certificate(
    certificate_id: int,
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    certificate = certificate_service.get_certificate(db, certificate_id=certificate_id, current_user_context=context)
    return APIResponse(message="Certificate retrieved successfully", data=Certificate.model_validate(certificate))


@router.get("/{certificate_id}/download", response_model=APIResponse[CertificateDownload])
def download_certificate(
    certificate_id: int,
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    certificate = certificate_service.get_certificate(db, certificate_id=certificate_id, current_user_context=context)
    return APIResponse(message="Certificate download data retrieved successfully", data=CertificateDownload.model_validate(certificate))


@router.post("/{certificate_id}/email", response_model=APIResponse[CertificateEmailResult])
async def email_certificate(
    certificate_id: int,
    db: Session = Depends(get_db),
    context: UserContext = Depends(deps.get_current_user_with_context),
    sender: NotificationSender = Depends(deps.get_notification_sender)
):
    delivered = await certificate_service.send_certificate_email(
        db, certificate_id=certificate_id, current_user_context=context, sender=sender
    )
    message = "Certificate sent to your email" if delivered else "Certificate email could not be delivered"
    return APIResponse(message=message, data=CertificateEmailResult(certificate_id=certificate_id, delivered=delivered))
