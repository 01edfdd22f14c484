"""
rolegate.policy.approval

Account approval gate.

Responsibilities:
- Report whether a principal's registration was approved by staff.
- Customers are pre-approved; provider faults count as pending.
"""

from __future__ import annotations

from rolegate.auth.models import Role
from rolegate.observability.logging import get_logger
from rolegate.provider.base import IdentityProvider, IdentityProviderError

log = get_logger(__name__)


class ApprovalGate:
    def __init__(self, *, provider: IdentityProvider) -> None:
        self._provider = provider

    async def is_approved(self, principal_id: str, role: Role) -> bool:
        if role == Role.customer:
            return True
        try:
            status = await self._provider.approval_status(principal_id)
        except IdentityProviderError as e:
            log.warning("approval_check_failed", principal_id=principal_id, error=str(e))
            return False
        return status == "approved"
