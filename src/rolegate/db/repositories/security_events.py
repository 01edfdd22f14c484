"""
rolegate.db.repositories.security_events

Repository for `SecurityEventRow` entities.

Responsibilities:
- Append security audit events (bypass attempts, MFA lifecycle, verification).
- Query the trail by principal for review.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.db.models import SecurityEventRow


class SecurityEventRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(
        self,
        *,
        event_type: str,
        severity: str,
        principal_id: str | None,
        details: dict[str, Any],
    ) -> SecurityEventRow:
        # Security events are append-only (no update/delete) in normal operation.
        ev = SecurityEventRow(
            event_type=event_type,
            severity=severity,
            principal_id=principal_id,
            details=details,
        )
        self._session.add(ev)
        await self._session.flush()
        return ev

    async def list_for_principal(
        self, principal_id: str, *, limit: int = 200
    ) -> list[SecurityEventRow]:
        stmt = (
            select(SecurityEventRow)
            .where(SecurityEventRow.principal_id == principal_id)
            .order_by(desc(SecurityEventRow.created_at))
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all())


# --- Module Notes -----------------------------------------------------------
# Writes arrive through `rolegate.audit.sink.QueuedAuditSink`, never from the request path.
