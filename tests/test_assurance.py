"""
tests.test_assurance

MFA step-up gate: state classification, fail-open and bypass-attempt auditing.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from rolegate.audit.events import EventType, Severity
from rolegate.auth.models import AssuranceLevel, Role
from rolegate.policy.assurance import AssuranceLevelGate, AssuranceState, enrollment_required


@pytest.mark.asyncio
@pytest.mark.parametrize("aal", list(AssuranceLevel))
async def test_no_verified_factor_is_not_required(provider, sink, make_session, aal) -> None:
    provider.add_factor("u", verified=False)
    gate = AssuranceLevelGate(provider=provider, audit=sink)
    result = await gate.check(make_session("u", aal=aal), route="/wallet")
    assert result.state == AssuranceState.not_required
    assert sink.events == []


@pytest.mark.asyncio
async def test_verified_factor_at_aal1_is_pending_and_audited_once(
    provider, sink, make_session
) -> None:
    provider.add_factor("u")
    fixed = datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)
    gate = AssuranceLevelGate(provider=provider, audit=sink, clock=lambda: fixed)

    result = await gate.check(make_session("u"), route="/wallet")

    assert result.state == AssuranceState.required_pending
    assert result.current_level == AssuranceLevel.aal1
    assert len(sink.events) == 1
    event = sink.events[0]
    assert event.event_type == EventType.mfa_bypass_attempt
    assert event.severity == Severity.high
    assert event.principal_id == "u"
    assert event.details == {
        "user_id": "u",
        "current_aal": "aal1",
        "required_aal": "aal2",
        "pathname": "/wallet",
        "timestamp": fixed.isoformat(),
    }


@pytest.mark.asyncio
async def test_each_pending_check_emits_its_own_event(provider, sink, make_session) -> None:
    provider.add_factor("u")
    gate = AssuranceLevelGate(provider=provider, audit=sink)
    await gate.check(make_session("u"), route="/a")
    await gate.check(make_session("u"), route="/b")
    assert [e.details["pathname"] for e in sink.events] == ["/a", "/b"]


@pytest.mark.asyncio
async def test_verified_factor_at_aal2_is_satisfied(provider, sink, make_session) -> None:
    provider.add_factor("u")
    gate = AssuranceLevelGate(provider=provider, audit=sink)
    result = await gate.check(make_session("u", aal=AssuranceLevel.aal2), route="/wallet")
    assert result.state == AssuranceState.required_satisfied
    assert sink.events == []


@pytest.mark.asyncio
@pytest.mark.parametrize("op", ["list_factors", "assurance_level"])
async def test_provider_error_fails_open(provider, sink, make_session, op) -> None:
    provider.add_factor("u")
    provider.failing.add(op)
    gate = AssuranceLevelGate(provider=provider, audit=sink)
    result = await gate.check(make_session("u"), route="/wallet")
    assert result.state == AssuranceState.not_required
    assert result.fault is not None
    assert sink.events == []


@pytest.mark.asyncio
async def test_audit_failure_does_not_change_result(provider, make_session, failing_sink) -> None:
    provider.add_factor("u")
    failing = failing_sink
    gate = AssuranceLevelGate(provider=provider, audit=failing)
    result = await gate.check(make_session("u"), route="/wallet")
    assert result.state == AssuranceState.required_pending
    assert failing.attempts == 1


def test_enrollment_required_for_enforced_roles_only() -> None:
    enforced = ["owner", "master"]
    assert enrollment_required(Role.owner, has_verified_factor=False, enforced_roles=enforced)
    assert not enrollment_required(Role.owner, has_verified_factor=True, enforced_roles=enforced)
    assert not enrollment_required(Role.operation, has_verified_factor=False, enforced_roles=enforced)
    assert not enrollment_required(None, has_verified_factor=False, enforced_roles=enforced)
