"""
rolegate.db.repositories.verification_codes

Repository for pending contact-verification codes.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.auth.models import ContactChannel
from rolegate.db.models import VerificationCode, utcnow


class VerificationCodeRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def issue(
        self,
        *,
        principal_id: str,
        channel: ContactChannel,
        destination: str,
        code_hash: str,
        expires_at: datetime,
    ) -> VerificationCode:
        # Only the newest code per channel is valid; older ones are consumed on issue.
        await self._session.execute(
            update(VerificationCode)
            .where(
                VerificationCode.principal_id == principal_id,
                VerificationCode.channel == channel,
                VerificationCode.consumed_at.is_(None),
            )
            .values(consumed_at=utcnow())
        )
        row = VerificationCode(
            principal_id=principal_id,
            channel=channel,
            destination=destination,
            code_hash=code_hash,
            expires_at=expires_at,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def latest_open(
        self, *, principal_id: str, channel: ContactChannel
    ) -> VerificationCode | None:
        stmt = (
            select(VerificationCode)
            .where(
                VerificationCode.principal_id == principal_id,
                VerificationCode.channel == channel,
                VerificationCode.consumed_at.is_(None),
            )
            .order_by(desc(VerificationCode.created_at))
            .limit(1)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def register_failure(self, row: VerificationCode, *, max_attempts: int) -> bool:
        """Count a wrong guess; returns True when the code was burned by it."""
        row.attempts = (row.attempts or 0) + 1
        if row.attempts >= max_attempts:
            row.consumed_at = utcnow()
            return True
        return False

    async def consume(self, row: VerificationCode) -> None:
        row.consumed_at = utcnow()
