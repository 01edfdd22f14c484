"""
rolegate.policy.assurance

MFA step-up gate (AAL1 -> AAL2).

Responsibilities:
- Classify a session as not_required / required_pending / required_satisfied.
- Fail open on provider faults.
- Report every required_pending check as a bypass attempt (best effort).
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

from rolegate.audit.events import EventType, SecurityEvent, Severity
from rolegate.audit.sink import AuditSink
from rolegate.auth.models import AssuranceLevel, Role, RouteKey, Session
from rolegate.observability.logging import get_logger
from rolegate.provider.base import IdentityProvider, IdentityProviderError

log = get_logger(__name__)


class AssuranceState(enum.StrEnum):
    not_required = "not_required"
    required_pending = "required_pending"
    required_satisfied = "required_satisfied"


@dataclass(frozen=True, slots=True)
class AssuranceResult:
    state: AssuranceState
    current_level: AssuranceLevel | None = None
    fault: str | None = None


def enrollment_required(
    role: Role | None, *, has_verified_factor: bool, enforced_roles: Iterable[str]
) -> bool:
    """
    Sensitive roles must enroll a second factor. This is reported to the UI
    (enrollment prompt); it does not gate routes.
    """

    if role is None or has_verified_factor:
        return False
    return role.value in {str(r).lower() for r in enforced_roles}


class AssuranceLevelGate:
    def __init__(
        self,
        *,
        provider: IdentityProvider,
        audit: AuditSink,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._provider = provider
        self._audit = audit
        self._clock = clock or (lambda: datetime.now(tz=UTC))

    async def check(self, session: Session, *, route: RouteKey | None = None) -> AssuranceResult:
        try:
            factors = await self._provider.list_factors(session.principal_id)
            if not any(f.is_verified for f in factors):
                return AssuranceResult(state=AssuranceState.not_required)
            level = await self._provider.assurance_level(session)
        except IdentityProviderError as e:
            # Fail open: availability wins over strict step-up when the provider is down.
            log.warning(
                "assurance_check_failed_open",
                principal_id=session.principal_id,
                route=route,
                error=str(e),
            )
            return AssuranceResult(state=AssuranceState.not_required, fault=str(e))

        if level == AssuranceLevel.aal2:
            return AssuranceResult(state=AssuranceState.required_satisfied, current_level=level)

        self._report_bypass_attempt(session=session, level=level, route=route)
        return AssuranceResult(state=AssuranceState.required_pending, current_level=level)

    def _report_bypass_attempt(
        self, *, session: Session, level: AssuranceLevel, route: RouteKey | None
    ) -> None:
        event = SecurityEvent(
            event_type=EventType.mfa_bypass_attempt,
            severity=Severity.high,
            principal_id=session.principal_id,
            details={
                "user_id": session.principal_id,
                "current_aal": level.value,
                "required_aal": AssuranceLevel.aal2.value,
                "pathname": route,
                "timestamp": self._clock().isoformat(),
            },
        )
        try:
            self._audit.emit(event)
        except Exception:
            # Audit is fire-and-forget; it must never change the decision.
            log.exception("audit_emit_failed", principal_id=session.principal_id, route=route)
