"""
rolegate.services.role_admin

Privileged administration of role assignments and account approval.

Responsibilities:
- Replace a principal's role and notify live subscribers.
- Record approval decisions for new accounts.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.audit.events import EventType, SecurityEvent, Severity
from rolegate.audit.sink import AuditSink
from rolegate.auth.models import Role
from rolegate.db.models import ApprovalStatus
from rolegate.db.repositories.profiles import ProfileRepo
from rolegate.db.repositories.roles import RoleRepo
from rolegate.provider.base import USER_ROLES_TABLE
from rolegate.provider.changes import ChangeEvent, ChangeFeed


class RoleAdminService:
    def __init__(self, *, session: AsyncSession, feed: ChangeFeed, audit: AuditSink) -> None:
        self._session = session
        self._feed = feed
        self._audit = audit

    async def set_role(self, *, actor: str, principal_id: str, role: Role) -> None:
        await RoleRepo(self._session).replace(principal_id=principal_id, role=role.value)
        await self._session.commit()
        # Publish only after commit so subscribers re-read the new row.
        await self._feed.publish(
            ChangeEvent(
                table=USER_ROLES_TABLE,
                principal_id=principal_id,
                action="UPDATE",
                payload={"role": role.value},
            )
        )
        self._audit.emit(
            SecurityEvent(
                event_type=EventType.role_changed,
                severity=Severity.medium,
                principal_id=principal_id,
                details={"actor": actor, "role": role.value},
            )
        )

    async def set_approval(self, *, principal_id: str, status: ApprovalStatus) -> None:
        await ProfileRepo(self._session).set_approval(principal_id=principal_id, status=status)
        await self._session.commit()
