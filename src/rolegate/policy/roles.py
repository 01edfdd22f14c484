"""
rolegate.policy.roles

Role resolution from the authoritative role store.

Responsibilities:
- Pick one role per principal deterministically when several rows exist.
- Fail closed: any provider fault resolves to "unknown", never raises.
- Offer a live subscription to role changes for a principal.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass

from rolegate.auth.models import Role
from rolegate.observability.logging import get_logger
from rolegate.provider.base import USER_ROLES_TABLE, IdentityProvider, IdentityProviderError
from rolegate.provider.changes import ChangeCallback, Subscription

log = get_logger(__name__)


class RolePriority(enum.StrEnum):
    # Lowest string value wins (ascending sort of the stored rows).
    alphabetical = "alphabetical"
    # Explicit privilege order, see PRIVILEGE_ORDER.
    privilege = "privilege"


PRIVILEGE_ORDER: tuple[Role, ...] = (
    Role.owner,
    Role.master,
    Role.admin,
    Role.financeiro,
    Role.operation,
    Role.translator,
    Role.customer,
)


@dataclass(frozen=True, slots=True)
class RoleResolution:
    role: Role | None
    fault: str | None = None

    @property
    def unknown(self) -> bool:
        return self.role is None


def select_role(roles: Iterable[Role], priority: RolePriority) -> Role | None:
    candidates = list(roles)
    if not candidates:
        return None
    if priority == RolePriority.privilege:
        return min(candidates, key=PRIVILEGE_ORDER.index)
    return min(candidates, key=lambda r: r.value)


class RoleResolver:
    def __init__(
        self,
        *,
        provider: IdentityProvider,
        priority: RolePriority = RolePriority.alphabetical,
    ) -> None:
        self._provider = provider
        self._priority = priority

    async def resolve(self, principal_id: str) -> RoleResolution:
        try:
            rows = await self._provider.role_rows(principal_id)
        except IdentityProviderError as e:
            log.warning("role_lookup_failed", principal_id=principal_id, error=str(e))
            return RoleResolution(role=None, fault=str(e))

        roles = [r for r in (Role.parse(v) for v in rows) if r is not None]
        if len(roles) < len(rows):
            log.warning(
                "role_rows_ignored",
                principal_id=principal_id,
                ignored=[v for v in rows if Role.parse(v) is None],
            )
        return RoleResolution(role=select_role(roles, self._priority))

    def watch(self, principal_id: str, callback: ChangeCallback) -> Subscription:
        return self._provider.subscribe(
            principal_id=principal_id, table=USER_ROLES_TABLE, callback=callback
        )


# --- Module Notes -----------------------------------------------------------
# Nothing is cached here: a stale role is exactly what live re-evaluation avoids.
