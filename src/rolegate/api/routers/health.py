"""
rolegate.api.routers.health

Liveness and readiness probes.

`/readyz` fails when the identity store is unreachable: every role lookup
would fail closed, so the instance should leave the load balancer.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.api.deps import db_session

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(request: Request, session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    await session.execute(text("SELECT 1"))
    audit = request.app.state.audit
    return {"status": "ready", "audit_backlog": getattr(audit, "backlog", 0)}
