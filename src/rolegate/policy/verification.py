"""
rolegate.policy.verification

Contact-verification gate (phone / e-mail).

Responsibilities:
- Project the principal's verification flags.
- Fail closed: provider faults report both channels unverified.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from rolegate.auth.models import ContactChannel
from rolegate.observability.logging import get_logger
from rolegate.provider.base import IdentityProvider, IdentityProviderError

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class VerificationResult:
    phone_verified: bool = False
    email_verified: bool = False
    fault: str | None = None

    def is_verified(self, channel: ContactChannel) -> bool:
        if channel == ContactChannel.phone:
            return self.phone_verified
        return self.email_verified

    def satisfies(self, channels: Iterable[ContactChannel]) -> bool:
        return all(self.is_verified(c) for c in channels)


class VerificationGate:
    def __init__(self, *, provider: IdentityProvider) -> None:
        self._provider = provider

    async def check(self, principal_id: str) -> VerificationResult:
        try:
            status = await self._provider.verification_status(principal_id)
        except IdentityProviderError as e:
            # Fail closed, unlike the assurance gate.
            log.warning("verification_check_failed_closed", principal_id=principal_id, error=str(e))
            return VerificationResult(fault=str(e))
        return VerificationResult(
            phone_verified=status.phone_verified,
            email_verified=status.email_verified,
        )
