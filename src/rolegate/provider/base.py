"""
rolegate.provider.base

Identity provider protocol and error type.

Responsibilities:
- Describe the provider operations the policy layer consumes.
- Define the single error type providers raise for any backend fault.
"""

from __future__ import annotations

from typing import Protocol

from rolegate.auth.models import AssuranceLevel, MfaFactor, Session, VerificationStatus
from rolegate.provider.changes import ChangeCallback, Subscription

USER_ROLES_TABLE = "user_roles"


class IdentityProviderError(Exception):
    """
    Raised by providers for any lookup failure (backend down, malformed row, ...).
    Gates catch it and convert it into their documented default.
    """


class IdentityProvider(Protocol):
    async def role_rows(self, principal_id: str) -> list[str]: ...

    async def list_factors(self, principal_id: str) -> list[MfaFactor]: ...

    async def assurance_level(self, session: Session) -> AssuranceLevel: ...

    async def verification_status(self, principal_id: str) -> VerificationStatus: ...

    async def approval_status(self, principal_id: str) -> str: ...

    def subscribe(
        self, *, principal_id: str, table: str, callback: ChangeCallback
    ) -> Subscription: ...
