"""
rolegate.api.routers.mfa

MFA remediation endpoints (enrollment, step-up, backup codes, removal).

Responsibilities:
- Expose `MfaService` to the MFA challenge and settings screens.
- Return a fresh aal2 session token after a successful step-up.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_403_FORBIDDEN

from rolegate.api.deps import access_engine_dep, audit_dep, db_session, http_error, settings_dep
from rolegate.audit.sink import AuditSink
from rolegate.auth.deps import get_session
from rolegate.auth.models import Session
from rolegate.policy.assurance import AssuranceState
from rolegate.policy.engine import AccessDecisionEngine
from rolegate.services.errors import RemediationError
from rolegate.services.mfa_service import MfaService
from rolegate.settings import Settings

router = APIRouter(prefix="/v1/mfa", tags=["mfa"])


class FactorItem(BaseModel):
    id: str
    type: str
    status: str
    friendly_name: str | None = None


class MfaStatusResponse(BaseModel):
    enabled: bool
    enrollment_required: bool
    factors: list[FactorItem] = Field(default_factory=list)


class EnrollResponse(BaseModel):
    factor_id: str
    secret: str
    provisioning_uri: str


class FactorCodeRequest(BaseModel):
    factor_id: str = Field(min_length=1, max_length=64)
    code: str = Field(min_length=6, max_length=6)


class CodeRequest(BaseModel):
    code: str = Field(min_length=1, max_length=32)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class BackupCodesResponse(BaseModel):
    codes: list[str]


def _service(session: AsyncSession, settings: Settings, audit: AuditSink) -> MfaService:
    return MfaService(session=session, settings=settings, audit=audit)


async def _require_step_up(
    request: Request, principal: Session, engine: AccessDecisionEngine
) -> None:
    # Changing factors from an aal1 session would let it mint its own step-up.
    result = await engine.assurance.check(principal, route=request.url.path)
    if result.state == AssuranceState.required_pending:
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="MFA step-up required")


@router.get("/status", response_model=MfaStatusResponse)
async def mfa_status(
    principal: Session = Depends(get_session),
    engine: AccessDecisionEngine = Depends(access_engine_dep),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    audit: AuditSink = Depends(audit_dep),
) -> MfaStatusResponse:
    resolution = await engine.roles.resolve(principal.principal_id)
    status = await _service(session, settings, audit).status(
        principal_id=principal.principal_id, role=resolution.role
    )
    return MfaStatusResponse(
        enabled=status.enabled,
        enrollment_required=status.enrollment_required,
        factors=[
            FactorItem(
                id=f.id, type=f.type.value, status=f.status.value, friendly_name=f.friendly_name
            )
            for f in status.factors
        ],
    )


@router.post("/enroll", response_model=EnrollResponse)
async def enroll(
    request: Request,
    principal: Session = Depends(get_session),
    engine: AccessDecisionEngine = Depends(access_engine_dep),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    audit: AuditSink = Depends(audit_dep),
) -> EnrollResponse:
    await _require_step_up(request, principal, engine)
    try:
        enrollment = await _service(session, settings, audit).enroll_totp(session=principal)
    except RemediationError as e:
        raise http_error(e) from e
    return EnrollResponse(
        factor_id=enrollment.factor_id,
        secret=enrollment.secret,
        provisioning_uri=enrollment.provisioning_uri,
    )


@router.post("/enroll/verify")
async def verify_enrollment(
    request: Request,
    body: FactorCodeRequest,
    principal: Session = Depends(get_session),
    engine: AccessDecisionEngine = Depends(access_engine_dep),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    audit: AuditSink = Depends(audit_dep),
) -> dict[str, str]:
    await _require_step_up(request, principal, engine)
    try:
        await _service(session, settings, audit).verify_enrollment(
            session=principal, factor_id=body.factor_id, code=body.code
        )
    except RemediationError as e:
        raise http_error(e) from e
    return {"status": "enrolled"}


@router.post("/challenge/verify", response_model=TokenResponse)
async def verify_challenge(
    body: FactorCodeRequest,
    principal: Session = Depends(get_session),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    audit: AuditSink = Depends(audit_dep),
) -> TokenResponse:
    try:
        token = await _service(session, settings, audit).verify_challenge(
            session=principal, factor_id=body.factor_id, code=body.code
        )
    except RemediationError as e:
        raise http_error(e) from e
    return TokenResponse(access_token=token)


@router.post("/backup-codes", response_model=BackupCodesResponse)
async def generate_backup_codes(
    request: Request,
    principal: Session = Depends(get_session),
    engine: AccessDecisionEngine = Depends(access_engine_dep),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    audit: AuditSink = Depends(audit_dep),
) -> BackupCodesResponse:
    await _require_step_up(request, principal, engine)
    codes = await _service(session, settings, audit).generate_backup_codes(
        principal_id=principal.principal_id
    )
    return BackupCodesResponse(codes=codes)


@router.post("/backup-codes/verify", response_model=TokenResponse)
async def verify_backup_code(
    body: CodeRequest,
    principal: Session = Depends(get_session),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    audit: AuditSink = Depends(audit_dep),
) -> TokenResponse:
    try:
        token = await _service(session, settings, audit).verify_backup_code(
            session=principal, code=body.code
        )
    except RemediationError as e:
        raise http_error(e) from e
    return TokenResponse(access_token=token)


@router.post("/disable")
async def disable(
    request: Request,
    body: CodeRequest,
    principal: Session = Depends(get_session),
    engine: AccessDecisionEngine = Depends(access_engine_dep),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    audit: AuditSink = Depends(audit_dep),
) -> dict[str, int]:
    await _require_step_up(request, principal, engine)
    try:
        removed = await _service(session, settings, audit).disable(
            session=principal, code=body.code
        )
    except RemediationError as e:
        raise http_error(e) from e
    return {"factors_removed": removed}


@router.post("/cleanup")
async def cleanup_unverified(
    principal: Session = Depends(get_session),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    audit: AuditSink = Depends(audit_dep),
) -> dict[str, int]:
    removed = await _service(session, settings, audit).cleanup_unverified(
        principal_id=principal.principal_id
    )
    return {"factors_removed": removed}
