"""
rolegate.api.routers.admin

Privileged administration endpoints.

Responsibilities:
- Assign a principal's role (owner/master only, step-up required).
- Record account approval decisions.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.api.deps import audit_dep, db_session, feed_dep
from rolegate.audit.sink import AuditSink
from rolegate.auth.deps import require_roles
from rolegate.auth.models import Role, Session
from rolegate.db.models import ApprovalStatus
from rolegate.provider.changes import ChangeFeed
from rolegate.services.role_admin import RoleAdminService

router = APIRouter(prefix="/v1/admin", tags=["admin"])

_require_admin = require_roles(Role.owner, Role.master)


class RoleAssignment(BaseModel):
    role: Role


class ApprovalDecision(BaseModel):
    status: ApprovalStatus


@router.put("/roles/{principal_id}")
async def assign_role(
    principal_id: str,
    body: RoleAssignment,
    actor: Session = Depends(_require_admin),
    session: AsyncSession = Depends(db_session),
    feed: ChangeFeed = Depends(feed_dep),
    audit: AuditSink = Depends(audit_dep),
) -> dict[str, str]:
    await RoleAdminService(session=session, feed=feed, audit=audit).set_role(
        actor=actor.principal_id, principal_id=principal_id, role=body.role
    )
    return {"principal_id": principal_id, "role": body.role.value}


@router.put("/approvals/{principal_id}")
async def set_approval(
    principal_id: str,
    body: ApprovalDecision,
    _: Session = Depends(_require_admin),
    session: AsyncSession = Depends(db_session),
    feed: ChangeFeed = Depends(feed_dep),
    audit: AuditSink = Depends(audit_dep),
) -> dict[str, str]:
    await RoleAdminService(session=session, feed=feed, audit=audit).set_approval(
        principal_id=principal_id, status=body.status
    )
    return {"principal_id": principal_id, "status": body.status.value}
