"""
rolegate.api.routers.access

Access-decision endpoints consumed by the UI shell's router.

Responsibilities:
- Classify a navigation attempt into allow / redirect / deny.
- List the routes the caller's role may open (for menus).
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from rolegate.api.deps import access_engine_dep
from rolegate.auth.deps import get_session, optional_session
from rolegate.auth.models import Session
from rolegate.policy.decisions import as_dict
from rolegate.policy.engine import AccessDecisionEngine

router = APIRouter(prefix="/v1/access", tags=["access"])


class DecideRequest(BaseModel):
    route: str = Field(min_length=1, max_length=256)


class DecisionResponse(BaseModel):
    decision: Literal["allow", "redirect", "deny"]
    target: str | None = None
    reason: str | None = None


class RoutesResponse(BaseModel):
    routes: list[str] = Field(default_factory=list)


@router.post("/decide", response_model=DecisionResponse)
async def decide(
    body: DecideRequest,
    session: Session | None = Depends(optional_session),
    engine: AccessDecisionEngine = Depends(access_engine_dep),
) -> DecisionResponse:
    # Always 200: an unauthenticated caller gets a deny decision, not an HTTP error.
    decision = await engine.decide(body.route, session)
    return DecisionResponse(**as_dict(decision))


@router.get("/routes", response_model=RoutesResponse)
async def accessible_routes(
    session: Session = Depends(get_session),
    engine: AccessDecisionEngine = Depends(access_engine_dep),
) -> RoutesResponse:
    routes = await engine.accessible_routes(session)
    return RoutesResponse(routes=sorted(routes))
