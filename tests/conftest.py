"""
tests.conftest

Shared fakes and fixtures.

Responsibilities:
- In-memory identity provider with switchable faults.
- Recording / failing audit sinks.
- Session and engine factories for policy unit tests.
- An app factory running the FastAPI lifespan against a temp SQLite file.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import pytest

from rolegate.api.app import create_app
from rolegate.audit.events import SecurityEvent
from rolegate.auth.models import (
    AssuranceLevel,
    ContactChannel,
    FactorStatus,
    FactorType,
    MfaFactor,
    Session,
    VerificationStatus,
)
from rolegate.policy.approval import ApprovalGate
from rolegate.policy.assurance import AssuranceLevelGate
from rolegate.policy.engine import AccessDecisionEngine, RemediationRoutes
from rolegate.policy.permissions import PermissionTable
from rolegate.policy.roles import RolePriority, RoleResolver
from rolegate.policy.verification import VerificationGate
from rolegate.provider.base import IdentityProviderError
from rolegate.provider.changes import ChangeCallback, ChangeFeed, Subscription
from rolegate.settings import Settings


class FakeProvider:
    def __init__(self) -> None:
        self.roles: dict[str, list[str]] = {}
        self.factors: dict[str, list[MfaFactor]] = {}
        self.verification: dict[str, VerificationStatus] = {}
        self.approval: dict[str, str] = {}
        self.failing: set[str] = set()
        self.calls: Counter[str] = Counter()
        self.feed = ChangeFeed()

    def _enter(self, op: str) -> None:
        self.calls[op] += 1
        if op in self.failing:
            raise IdentityProviderError(f"{op} unavailable")

    def add_factor(self, principal_id: str, *, verified: bool = True) -> MfaFactor:
        factor = MfaFactor(
            id=f"f-{len(self.factors.get(principal_id, [])) + 1}",
            principal_id=principal_id,
            type=FactorType.totp,
            status=FactorStatus.verified if verified else FactorStatus.unverified,
        )
        self.factors.setdefault(principal_id, []).append(factor)
        return factor

    async def role_rows(self, principal_id: str) -> list[str]:
        self._enter("role_rows")
        return sorted(self.roles.get(principal_id, []))

    async def list_factors(self, principal_id: str) -> list[MfaFactor]:
        self._enter("list_factors")
        return list(self.factors.get(principal_id, []))

    async def assurance_level(self, session: Session) -> AssuranceLevel:
        self._enter("assurance_level")
        return session.assurance_level

    async def verification_status(self, principal_id: str) -> VerificationStatus:
        self._enter("verification_status")
        return self.verification.get(principal_id, VerificationStatus())

    async def approval_status(self, principal_id: str) -> str:
        self._enter("approval_status")
        return self.approval.get(principal_id, "pending")

    def subscribe(
        self, *, principal_id: str, table: str, callback: ChangeCallback
    ) -> Subscription:
        return self.feed.subscribe(principal_id=principal_id, table=table, callback=callback)


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[SecurityEvent] = []

    def emit(self, event: SecurityEvent) -> None:
        self.events.append(event)


class FailingSink:
    def __init__(self) -> None:
        self.attempts = 0

    def emit(self, event: SecurityEvent) -> None:
        self.attempts += 1
        raise RuntimeError("audit backend down")


class CapturingSender:
    def __init__(self) -> None:
        self.sent: list[tuple[ContactChannel, str, str]] = []

    async def send(self, *, channel: ContactChannel, destination: str, code: str) -> None:
        self.sent.append((channel, destination, code))


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def make_session():
    def _make(
        principal_id: str = "user-1",
        *,
        aal: AssuranceLevel = AssuranceLevel.aal1,
        ttl: timedelta = timedelta(hours=1),
    ) -> Session:
        now = datetime.now(tz=UTC)
        return Session(
            session_id=f"sid-{principal_id}",
            principal_id=principal_id,
            assurance_level=aal,
            created_at=now,
            expires_at=now + ttl,
        )

    return _make


@pytest.fixture
def make_engine(provider: FakeProvider, sink: RecordingSink):
    def _make(
        *,
        audit: Any = None,
        require_approval: bool = False,
        priority: RolePriority = RolePriority.alphabetical,
    ) -> AccessDecisionEngine:
        remediation = RemediationRoutes()
        return AccessDecisionEngine(
            permissions=PermissionTable(always_allowed=remediation.all()),
            roles=RoleResolver(provider=provider, priority=priority),
            assurance=AssuranceLevelGate(provider=provider, audit=audit or sink),
            verification=VerificationGate(provider=provider),
            approval=ApprovalGate(provider=provider) if require_approval else None,
            remediation=remediation,
        )

    return _make


@pytest.fixture
def running_app(tmp_path):
    @asynccontextmanager
    async def _run(**overrides: Any) -> AsyncIterator[tuple[Any, httpx.AsyncClient]]:
        settings = Settings(
            **{
                "env": "test",
                "database_url": f"sqlite+aiosqlite:///{tmp_path / 'rolegate.db'}",
                **overrides,
            }
        )
        app = create_app(settings=settings)
        # httpx ASGITransport does not run the lifespan; drive it explicitly.
        async with app.router.lifespan_context(app):
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
                yield app, client

    return _run


async def dev_token(
    client: httpx.AsyncClient, subject: str, *, role: str | None = None, aal: str = "aal1"
) -> dict[str, str]:
    r = await client.post("/v1/dev/token", json={"subject": subject, "role": role, "aal": aal})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def auth_headers():
    return dev_token


@pytest.fixture
def failing_sink() -> FailingSink:
    return FailingSink()


@pytest.fixture
def capturing_sender() -> CapturingSender:
    return CapturingSender()
