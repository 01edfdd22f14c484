"""
rolegate.services.mfa_service

MFA lifecycle service.

Responsibilities:
- Enroll TOTP factors (replacing stale unverified ones) and confirm enrollment.
- Step a session up to aal2 via TOTP or single-use backup code.
- Disable MFA and clean up abandoned enrollments.
- Refuse enrollment and removal from an aal1 session once a verified factor exists.
- Reject TOTP codes replaying an already accepted time step.
- Report MFA status, including whether the principal's role must enroll.
"""

from __future__ import annotations

import hmac
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pyotp
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.audit.events import EventType, SecurityEvent, Severity
from rolegate.audit.sink import AuditSink
from rolegate.auth.jwt import JwtConfig, elevate
from rolegate.auth.models import AssuranceLevel, FactorStatus, FactorType, MfaFactor, Role, Session
from rolegate.db.models import MfaFactorRow
from rolegate.db.repositories.factors import BackupCodeRepo, FactorRepo
from rolegate.db.repositories.profiles import ProfileRepo
from rolegate.policy.assurance import enrollment_required
from rolegate.services.codes import backup_code, hash_code
from rolegate.services.errors import FactorNotFoundError, InvalidCodeError, StepUpRequiredError
from rolegate.settings import Settings


@dataclass(frozen=True, slots=True)
class TotpEnrollment:
    factor_id: str
    secret: str
    provisioning_uri: str


@dataclass(frozen=True, slots=True)
class MfaStatus:
    enabled: bool
    factors: list[MfaFactor]
    enrollment_required: bool


class MfaService:
    def __init__(self, *, session: AsyncSession, settings: Settings, audit: AuditSink) -> None:
        self._session = session
        self._settings = settings
        self._audit = audit

        self._factors = FactorRepo(session)
        self._backup_codes = BackupCodeRepo(session)
        self._profiles = ProfileRepo(session)

    async def status(self, *, principal_id: str, role: Role | None) -> MfaStatus:
        rows = await self._factors.list_for_principal(principal_id)
        factors = [_to_factor(r) for r in rows]
        verified = any(f.is_verified for f in factors)
        return MfaStatus(
            enabled=verified,
            factors=factors,
            enrollment_required=enrollment_required(
                role,
                has_verified_factor=verified,
                enforced_roles=self._settings.mfa_enforced_roles,
            ),
        )

    async def enroll_totp(self, *, session: Session) -> TotpEnrollment:
        principal_id = session.principal_id
        await self._require_step_up(session)
        # An abandoned enrollment would otherwise linger as a second unverified factor.
        await self._factors.delete_unverified(principal_id)
        secret = pyotp.random_base32()
        row = await self._factors.create(
            principal_id=principal_id,
            type=FactorType.totp,
            secret=secret,
            friendly_name=f"TOTP {datetime.now(tz=UTC).isoformat()}",
        )
        await self._session.commit()
        uri = pyotp.TOTP(secret).provisioning_uri(
            name=principal_id, issuer_name=self._settings.totp_issuer
        )
        return TotpEnrollment(factor_id=str(row.id), secret=secret, provisioning_uri=uri)

    async def verify_enrollment(self, *, session: Session, factor_id: str, code: str) -> None:
        principal_id = session.principal_id
        await self._require_step_up(session)
        row = await self._get_factor(principal_id, factor_id)
        step = _accepted_step(row.secret, code, row.last_used_timecode)
        if step is None:
            raise InvalidCodeError("invalid TOTP code")
        await self._factors.mark_verified(row)
        await self._factors.record_use(row, step)
        await self._profiles.set_mfa_enabled(principal_id=principal_id, enabled=True)
        await self._session.commit()
        self._emit(EventType.mfa_enrollment, Severity.low, principal_id, {"factor_type": "totp"})

    async def verify_challenge(self, *, session: Session, factor_id: str, code: str) -> str:
        row = await self._get_factor(session.principal_id, factor_id)
        if row.status != FactorStatus.verified:
            raise FactorNotFoundError("factor is not verified")
        step = _accepted_step(row.secret, code, row.last_used_timecode)
        if step is None:
            self._emit(
                EventType.mfa_challenge_failed,
                Severity.medium,
                session.principal_id,
                {"factor_type": "totp"},
            )
            raise InvalidCodeError("invalid TOTP code")
        await self._factors.record_use(row, step)
        await self._session.commit()
        self._emit(
            EventType.mfa_challenge_success,
            Severity.low,
            session.principal_id,
            {"factor_type": "totp"},
        )
        return self._elevated_token(session)

    async def generate_backup_codes(self, *, principal_id: str) -> list[str]:
        codes = [backup_code() for _ in range(self._settings.backup_code_count)]
        await self._backup_codes.replace(
            principal_id=principal_id, code_hashes=[hash_code(c) for c in codes]
        )
        await self._session.commit()
        return codes

    async def verify_backup_code(self, *, session: Session, code: str) -> str:
        consumed = await self._backup_codes.consume(
            principal_id=session.principal_id, code_hash=hash_code(code)
        )
        if not consumed:
            self._emit(
                EventType.mfa_challenge_failed,
                Severity.medium,
                session.principal_id,
                {"factor_type": "backup_code"},
            )
            raise InvalidCodeError("invalid or used backup code")
        await self._session.commit()
        self._emit(EventType.backup_code_used, Severity.medium, session.principal_id, {})
        return self._elevated_token(session)

    async def disable(self, *, session: Session, code: str) -> int:
        rows = await self._factors.list_for_principal(session.principal_id)
        verified = [r for r in rows if r.status == FactorStatus.verified]
        if not verified:
            raise FactorNotFoundError("no verified factor")
        if session.assurance_level != AssuranceLevel.aal2:
            raise StepUpRequiredError("MFA step-up required")
        # Removing MFA also requires proving possession of a factor right now.
        if all(_accepted_step(r.secret, code, r.last_used_timecode) is None for r in verified):
            raise InvalidCodeError("invalid TOTP code")
        removed = await self._factors.delete_all(session.principal_id)
        await self._backup_codes.delete_all(session.principal_id)
        await self._profiles.set_mfa_enabled(principal_id=session.principal_id, enabled=False)
        await self._session.commit()
        self._emit(
            EventType.mfa_disabled,
            Severity.high,
            session.principal_id,
            {"factors_removed": removed},
        )
        return removed

    async def cleanup_unverified(self, *, principal_id: str) -> int:
        removed = await self._factors.delete_unverified(principal_id)
        remaining = await self._factors.list_for_principal(principal_id)
        if not any(r.status == FactorStatus.verified for r in remaining):
            await self._profiles.set_mfa_enabled(principal_id=principal_id, enabled=False)
        await self._session.commit()
        return removed

    async def _require_step_up(self, session: Session) -> None:
        # Once a verified factor exists, adding another one is itself a step-up bypass.
        if session.assurance_level == AssuranceLevel.aal2:
            return
        rows = await self._factors.list_for_principal(session.principal_id)
        if any(r.status == FactorStatus.verified for r in rows):
            raise StepUpRequiredError("MFA step-up required")

    async def _get_factor(self, principal_id: str, factor_id: str) -> MfaFactorRow:
        try:
            fid = uuid.UUID(factor_id)
        except ValueError as e:
            raise FactorNotFoundError("factor not found") from e
        row = await self._factors.get(principal_id=principal_id, factor_id=fid)
        if row is None:
            raise FactorNotFoundError("factor not found")
        return row

    def _elevated_token(self, session: Session) -> str:
        return elevate(
            cfg=JwtConfig.from_settings(self._settings),
            session=session,
            ttl=timedelta(minutes=self._settings.session_ttl_minutes),
        )

    def _emit(
        self, event_type: EventType, severity: Severity, principal_id: str, details: dict
    ) -> None:
        self._audit.emit(
            SecurityEvent(
                event_type=event_type,
                severity=severity,
                principal_id=principal_id,
                details=details,
            )
        )


def _accepted_step(secret: str, code: str, last_used: int | None) -> int | None:
    """
    Returns the TOTP time step `code` belongs to, or None when it is wrong or
    replays a step at or before `last_used`. One step of clock drift either way
    is tolerated.
    """

    code = code.strip()
    if len(code) != 6 or not code.isdigit():
        return None
    totp = pyotp.TOTP(secret)
    current = totp.timecode(datetime.now(tz=UTC))
    for step in (current - 1, current, current + 1):
        if hmac.compare_digest(totp.generate_otp(step), code):
            if last_used is not None and step <= last_used:
                return None
            return step
    return None


def _to_factor(row: MfaFactorRow) -> MfaFactor:
    return MfaFactor(
        id=str(row.id),
        principal_id=row.principal_id,
        type=row.type,
        status=row.status,
        friendly_name=row.friendly_name,
    )


# --- Module Notes -----------------------------------------------------------
# Step-up returns a new token at aal2 with the same session id; the previous
# aal1 token stays valid until expiry, it simply keeps failing the step-up gate.
