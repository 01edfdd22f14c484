"""
rolegate.db.repositories.roles

Repository for `UserRole` rows.

Responsibilities:
- List role rows for a principal in ascending value order.
- Replace a principal's role assignment (privileged administrative action).
"""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.db.models import UserRole


class RoleRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_principal(self, principal_id: str) -> list[str]:
        # Ascending order matches the "lowest value first" read the resolver relies on.
        stmt = (
            select(UserRole.role)
            .where(UserRole.principal_id == principal_id)
            .order_by(UserRole.role.asc())
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def add(self, *, principal_id: str, role: str) -> UserRole:
        row = UserRole(principal_id=principal_id, role=role)
        self._session.add(row)
        await self._session.flush()
        return row

    async def replace(self, *, principal_id: str, role: str) -> UserRole:
        await self._session.execute(delete(UserRole).where(UserRole.principal_id == principal_id))
        return await self.add(principal_id=principal_id, role=role)
