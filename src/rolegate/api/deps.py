"""
rolegate.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions and shared policy objects.
- Encapsulate app.state access patterns.
- Translate remediation errors into HTTP errors.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_502_BAD_GATEWAY,
)

from rolegate.audit.sink import AuditSink
from rolegate.policy.engine import AccessDecisionEngine
from rolegate.provider.changes import ChangeFeed
from rolegate.services.errors import (
    DeliveryError,
    FactorNotFoundError,
    RemediationError,
    StepUpRequiredError,
)
from rolegate.services.verification_service import CodeSender
from rolegate.settings import Settings


def settings_dep(request: Request) -> Settings:
    # Settings are bound to the app in `create_app`, so tests can inject their own.
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit/rollback is managed explicitly by the service layer.
    async with session_factory() as session:
        yield session


def access_engine_dep(request: Request) -> AccessDecisionEngine:
    return request.app.state.access_engine  # type: ignore[attr-defined]


def audit_dep(request: Request) -> AuditSink:
    return request.app.state.audit  # type: ignore[attr-defined]


def feed_dep(request: Request) -> ChangeFeed:
    return request.app.state.feed  # type: ignore[attr-defined]


def code_sender_dep(request: Request) -> CodeSender:
    return request.app.state.code_sender  # type: ignore[attr-defined]


def http_error(e: RemediationError) -> HTTPException:
    if isinstance(e, FactorNotFoundError):
        return HTTPException(status_code=HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, StepUpRequiredError):
        return HTTPException(status_code=HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, DeliveryError):
        return HTTPException(status_code=HTTP_502_BAD_GATEWAY, detail=str(e))
    return HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=str(e))
