"""
rolegate.api.routers.dev_auth

Dev/test token minting (404 in prod).

Optionally seeds the subject's role row so a fresh database can be exercised
without the admin endpoints.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_404_NOT_FOUND

from rolegate.api.deps import db_session, settings_dep
from rolegate.auth.jwt import JwtConfig, issue_token
from rolegate.auth.models import AssuranceLevel
from rolegate.db.repositories.roles import RoleRepo
from rolegate.settings import Settings

router = APIRouter(prefix="/v1/dev", tags=["dev"])


class DevTokenRequest(BaseModel):
    subject: str = Field(min_length=1, max_length=128)
    aal: Literal["aal1", "aal2"] = "aal1"
    role: str | None = Field(default=None, max_length=32)
    ttl_minutes: int = Field(default=60, ge=1, le=24 * 60)


class DevTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/token", response_model=DevTokenResponse)
async def mint_dev_token(
    body: DevTokenRequest,
    settings: Settings = Depends(settings_dep),
    session: AsyncSession = Depends(db_session),
) -> DevTokenResponse:
    if settings.env == "prod":
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Not found")

    if body.role is not None:
        await RoleRepo(session).replace(principal_id=body.subject, role=body.role)
        await session.commit()

    token = issue_token(
        cfg=JwtConfig.from_settings(settings),
        subject=body.subject,
        aal=AssuranceLevel(body.aal),
        ttl=timedelta(minutes=body.ttl_minutes),
    )
    return DevTokenResponse(access_token=token)
