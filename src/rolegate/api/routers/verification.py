"""
rolegate.api.routers.verification

Contact verification endpoints (phone / e-mail one-time codes).
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.api.deps import audit_dep, code_sender_dep, db_session, http_error, settings_dep
from rolegate.audit.sink import AuditSink
from rolegate.auth.deps import get_session
from rolegate.auth.models import ContactChannel, Session
from rolegate.services.errors import RemediationError
from rolegate.services.verification_service import CodeSender, ContactVerificationService
from rolegate.settings import Settings

router = APIRouter(prefix="/v1/verification", tags=["verification"])


class VerificationRequest(BaseModel):
    channel: ContactChannel
    destination: str = Field(min_length=3, max_length=256)


class VerificationRequestResponse(BaseModel):
    expires_at: datetime


class ConfirmRequest(BaseModel):
    channel: ContactChannel
    code: str = Field(min_length=6, max_length=6, pattern=r"^\d{6}$")


class VerificationStatusResponse(BaseModel):
    phone_verified: bool
    email_verified: bool


def _service(
    session: AsyncSession, settings: Settings, audit: AuditSink, sender: CodeSender
) -> ContactVerificationService:
    return ContactVerificationService(session=session, settings=settings, audit=audit, sender=sender)


@router.get("/status", response_model=VerificationStatusResponse)
async def verification_status(
    principal: Session = Depends(get_session),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    audit: AuditSink = Depends(audit_dep),
    sender: CodeSender = Depends(code_sender_dep),
) -> VerificationStatusResponse:
    status = await _service(session, settings, audit, sender).status(
        principal_id=principal.principal_id
    )
    return VerificationStatusResponse(
        phone_verified=status.phone_verified, email_verified=status.email_verified
    )


@router.post("/request", response_model=VerificationRequestResponse)
async def request_code(
    body: VerificationRequest,
    principal: Session = Depends(get_session),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    audit: AuditSink = Depends(audit_dep),
    sender: CodeSender = Depends(code_sender_dep),
) -> VerificationRequestResponse:
    try:
        expires_at = await _service(session, settings, audit, sender).request_code(
            principal_id=principal.principal_id,
            channel=body.channel,
            destination=body.destination,
        )
    except RemediationError as e:
        raise http_error(e) from e
    return VerificationRequestResponse(expires_at=expires_at)


@router.post("/confirm")
async def confirm_code(
    body: ConfirmRequest,
    principal: Session = Depends(get_session),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    audit: AuditSink = Depends(audit_dep),
    sender: CodeSender = Depends(code_sender_dep),
) -> dict[str, str]:
    try:
        await _service(session, settings, audit, sender).confirm(
            principal_id=principal.principal_id, channel=body.channel, code=body.code
        )
    except RemediationError as e:
        raise http_error(e) from e
    return {"status": "verified"}
