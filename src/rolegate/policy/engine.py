"""
rolegate.policy.engine

Access-decision engine.

Responsibilities:
- Compose the permission table and the gates into one decision per
  (route, session): Allow, RedirectTo(remediation route) or Deny(reason).
- Enforce check precedence: session, role, role permission, then approval,
  step-up and contact verification.
- Build a fully wired engine from settings.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from rolegate.audit.sink import AuditSink
from rolegate.auth.models import RouteKey, Session
from rolegate.observability.logging import get_logger
from rolegate.policy.approval import ApprovalGate
from rolegate.policy.assurance import AssuranceLevelGate, AssuranceState
from rolegate.policy.decisions import AccessDecision, Allow, Deny, DenyReason, RedirectTo
from rolegate.policy.permissions import PermissionTable
from rolegate.policy.roles import RolePriority, RoleResolver
from rolegate.policy.verification import VerificationGate
from rolegate.provider.base import IdentityProvider
from rolegate.settings import Settings

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RemediationRoutes:
    mfa_challenge: RouteKey = "/mfa-challenge"
    verification: RouteKey = "/verify-contact"
    pending_approval: RouteKey = "/pending-approval"

    @classmethod
    def from_settings(cls, settings: Settings) -> RemediationRoutes:
        return cls(
            mfa_challenge=settings.mfa_challenge_route,
            verification=settings.verification_route,
            pending_approval=settings.pending_approval_route,
        )

    def all(self) -> frozenset[RouteKey]:
        return frozenset({self.mfa_challenge, self.verification, self.pending_approval})


class AccessDecisionEngine:
    """
    Classifies navigation attempts; never navigates.

    An unauthorized role is rejected before any gate runs, so a denied
    caller learns nothing about MFA or verification state.
    """

    def __init__(
        self,
        *,
        permissions: PermissionTable,
        roles: RoleResolver,
        assurance: AssuranceLevelGate,
        verification: VerificationGate,
        approval: ApprovalGate | None = None,
        remediation: RemediationRoutes | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._permissions = permissions
        self._roles = roles
        self._assurance = assurance
        self._verification = verification
        self._approval = approval
        self._remediation = remediation or RemediationRoutes()
        self._clock = clock or (lambda: datetime.now(tz=UTC))

    @property
    def roles(self) -> RoleResolver:
        return self._roles

    @property
    def assurance(self) -> AssuranceLevelGate:
        return self._assurance

    @property
    def permissions(self) -> PermissionTable:
        return self._permissions

    async def decide(self, route: RouteKey, session: Session | None) -> AccessDecision:
        decision = await self._decide(route, session)
        log.debug(
            "access_decision",
            route=route,
            principal_id=session.principal_id if session else None,
            decision=type(decision).__name__,
        )
        return decision

    async def _decide(self, route: RouteKey, session: Session | None) -> AccessDecision:
        if session is None or session.is_expired(self._clock()):
            return Deny(DenyReason.unauthenticated)

        resolution = await self._roles.resolve(session.principal_id)
        if resolution.role is None:
            return Deny(DenyReason.role_unresolved)
        role = resolution.role

        if not self._permissions.can_access(role, route):
            return Deny(DenyReason.role_not_permitted)

        if self._approval is not None and route != self._remediation.pending_approval:
            if not await self._approval.is_approved(session.principal_id, role):
                return RedirectTo(self._remediation.pending_approval)

        if route != self._remediation.mfa_challenge:
            result = await self._assurance.check(session, route=route)
            if result.state == AssuranceState.required_pending:
                return RedirectTo(self._remediation.mfa_challenge)

        channels = self._permissions.verification_required(route)
        if channels:
            status = await self._verification.check(session.principal_id)
            if not status.satisfies(channels):
                return RedirectTo(self._remediation.verification)

        return Allow()

    async def accessible_routes(self, session: Session | None) -> frozenset[RouteKey]:
        if session is None or session.is_expired(self._clock()):
            return frozenset()
        resolution = await self._roles.resolve(session.principal_id)
        return self._permissions.accessible_routes(resolution.role)


def build_engine(
    *,
    settings: Settings,
    provider: IdentityProvider,
    audit: AuditSink,
) -> AccessDecisionEngine:
    remediation = RemediationRoutes.from_settings(settings)
    return AccessDecisionEngine(
        permissions=PermissionTable(always_allowed=remediation.all()),
        roles=RoleResolver(provider=provider, priority=RolePriority(settings.role_priority)),
        assurance=AssuranceLevelGate(provider=provider, audit=audit),
        verification=VerificationGate(provider=provider),
        approval=ApprovalGate(provider=provider) if settings.require_approval else None,
        remediation=remediation,
    )


# --- Module Notes -----------------------------------------------------------
# Decisions are computed fresh on every call; nothing here memoizes a previous result.
