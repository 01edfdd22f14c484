"""
rolegate.db.repositories.factors

Repositories for MFA factors and backup codes.

Responsibilities:
- Create, verify and remove TOTP factors.
- Replace and consume single-use backup codes (stored hashed).
"""

from __future__ import annotations

import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.auth.models import FactorStatus, FactorType
from rolegate.db.models import BackupCode, MfaFactorRow, utcnow


class FactorRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_principal(self, principal_id: str) -> list[MfaFactorRow]:
        stmt = (
            select(MfaFactorRow)
            .where(MfaFactorRow.principal_id == principal_id)
            .order_by(MfaFactorRow.created_at.asc())
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def get(self, *, principal_id: str, factor_id: uuid.UUID) -> MfaFactorRow | None:
        row = await self._session.get(MfaFactorRow, factor_id)
        # Factor ids are not secrets; ownership is still checked on every lookup.
        if row is None or row.principal_id != principal_id:
            return None
        return row

    async def create(
        self,
        *,
        principal_id: str,
        type: FactorType,
        secret: str,
        friendly_name: str | None = None,
    ) -> MfaFactorRow:
        row = MfaFactorRow(
            principal_id=principal_id,
            type=type,
            status=FactorStatus.unverified,
            secret=secret,
            friendly_name=friendly_name,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def mark_verified(self, row: MfaFactorRow) -> None:
        row.status = FactorStatus.verified
        row.verified_at = utcnow()

    async def record_use(self, row: MfaFactorRow, timecode: int) -> None:
        row.last_used_timecode = timecode

    async def delete_unverified(self, principal_id: str) -> int:
        result = await self._session.execute(
            delete(MfaFactorRow).where(
                MfaFactorRow.principal_id == principal_id,
                MfaFactorRow.status == FactorStatus.unverified,
            )
        )
        return result.rowcount or 0

    async def delete_all(self, principal_id: str) -> int:
        result = await self._session.execute(
            delete(MfaFactorRow).where(MfaFactorRow.principal_id == principal_id)
        )
        return result.rowcount or 0


class BackupCodeRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def replace(self, *, principal_id: str, code_hashes: list[str]) -> None:
        # Generating a new set always invalidates the previous one.
        await self._session.execute(
            delete(BackupCode).where(BackupCode.principal_id == principal_id)
        )
        self._session.add_all(
            BackupCode(principal_id=principal_id, code_hash=h) for h in code_hashes
        )
        await self._session.flush()

    async def consume(self, *, principal_id: str, code_hash: str) -> bool:
        stmt = (
            select(BackupCode)
            .where(
                BackupCode.principal_id == principal_id,
                BackupCode.code_hash == code_hash,
                BackupCode.used_at.is_(None),
            )
            .limit(1)
            .with_for_update()
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return False
        row.used_at = utcnow()
        return True

    async def delete_all(self, principal_id: str) -> None:
        await self._session.execute(
            delete(BackupCode).where(BackupCode.principal_id == principal_id)
        )
