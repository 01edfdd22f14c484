"""
tests.test_engine

Access-decision precedence over the permission table and the gates.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from rolegate.audit.events import EventType
from rolegate.auth.models import AssuranceLevel, VerificationStatus
from rolegate.policy.decisions import Allow, Deny, DenyReason, RedirectTo, as_dict


@pytest.mark.asyncio
async def test_unauthenticated(make_engine) -> None:
    assert await make_engine().decide("/orders", None) == Deny(DenyReason.unauthenticated)


@pytest.mark.asyncio
async def test_expired_session_is_unauthenticated(provider, make_engine, make_session) -> None:
    provider.roles["u"] = ["owner"]
    session = make_session("u", ttl=timedelta(seconds=-1))
    assert await make_engine().decide("/", session) == Deny(DenyReason.unauthenticated)


@pytest.mark.asyncio
async def test_no_role_rows_is_role_unresolved(make_engine, make_session) -> None:
    assert await make_engine().decide("/", make_session("u")) == Deny(DenyReason.role_unresolved)


@pytest.mark.asyncio
async def test_role_lookup_fault_is_role_unresolved(provider, make_engine, make_session) -> None:
    provider.roles["u"] = ["owner"]
    provider.failing.add("role_rows")
    assert await make_engine().decide("/", make_session("u")) == Deny(DenyReason.role_unresolved)


@pytest.mark.asyncio
async def test_operation_may_open_orders_but_not_settings(
    provider, make_engine, make_session
) -> None:
    provider.roles["u"] = ["operation"]
    engine = make_engine()
    assert await engine.decide("/orders", make_session("u")) == Allow()
    assert await engine.decide("/settings", make_session("u")) == Deny(
        DenyReason.role_not_permitted
    )


@pytest.mark.asyncio
async def test_owner_without_factors_opens_wallet(provider, sink, make_engine, make_session) -> None:
    provider.roles["u"] = ["owner"]
    assert await make_engine().decide("/wallet", make_session("u")) == Allow()
    assert sink.events == []


@pytest.mark.asyncio
async def test_owner_with_factor_at_aal1_is_sent_to_challenge(
    provider, sink, make_engine, make_session
) -> None:
    provider.roles["u"] = ["owner"]
    provider.add_factor("u")

    decision = await make_engine().decide("/wallet", make_session("u"))

    assert decision == RedirectTo("/mfa-challenge")
    assert len(sink.events) == 1
    assert sink.events[0].event_type == EventType.mfa_bypass_attempt
    assert sink.events[0].details["pathname"] == "/wallet"


@pytest.mark.asyncio
async def test_owner_with_factor_at_aal2_is_allowed(provider, make_engine, make_session) -> None:
    provider.roles["u"] = ["owner"]
    provider.add_factor("u")
    session = make_session("u", aal=AssuranceLevel.aal2)
    assert await make_engine().decide("/wallet", session) == Allow()


@pytest.mark.asyncio
async def test_challenge_route_is_reachable_while_step_up_pending(
    provider, sink, make_engine, make_session
) -> None:
    provider.roles["u"] = ["operation"]
    provider.add_factor("u")
    assert await make_engine().decide("/mfa-challenge", make_session("u")) == Allow()
    assert sink.events == []


@pytest.mark.asyncio
async def test_denied_role_never_consults_gates(provider, sink, make_engine, make_session) -> None:
    provider.roles["u"] = ["customer"]
    provider.add_factor("u")
    decision = await make_engine().decide("/wallet", make_session("u"))
    assert decision == Deny(DenyReason.role_not_permitted)
    assert provider.calls["list_factors"] == 0
    assert sink.events == []


@pytest.mark.asyncio
async def test_decisions_are_recomputed_on_every_call(
    provider, sink, make_engine, make_session
) -> None:
    provider.roles["u"] = ["owner"]
    provider.add_factor("u")
    engine = make_engine()
    session = make_session("u")

    first = await engine.decide("/wallet", session)
    second = await engine.decide("/wallet", session)

    assert first == second == RedirectTo("/mfa-challenge")
    assert provider.calls["role_rows"] == 2
    assert len(sink.events) == 2


@pytest.mark.asyncio
async def test_assurance_fault_fails_open(provider, make_engine, make_session) -> None:
    provider.roles["u"] = ["owner"]
    provider.add_factor("u")
    provider.failing.add("list_factors")
    assert await make_engine().decide("/wallet", make_session("u")) == Allow()


@pytest.mark.asyncio
async def test_audit_failure_does_not_change_decision(
    provider, failing_sink, make_engine, make_session
) -> None:
    provider.roles["u"] = ["owner"]
    provider.add_factor("u")
    engine = make_engine(audit=failing_sink)
    assert await engine.decide("/wallet", make_session("u")) == RedirectTo("/mfa-challenge")
    assert failing_sink.attempts == 1


@pytest.mark.asyncio
async def test_unverified_phone_redirects_to_verification(
    provider, make_engine, make_session
) -> None:
    provider.roles["u"] = ["operation"]
    decision = await make_engine().decide("/payment-request", make_session("u"))
    assert decision == RedirectTo("/verify-contact")


@pytest.mark.asyncio
async def test_verified_phone_opens_payment_request(provider, make_engine, make_session) -> None:
    provider.roles["u"] = ["operation"]
    provider.verification["u"] = VerificationStatus(phone_verified=True)
    assert await make_engine().decide("/payment-request", make_session("u")) == Allow()


@pytest.mark.asyncio
async def test_payment_processing_needs_both_channels(provider, make_engine, make_session) -> None:
    provider.roles["u"] = ["financeiro"]
    provider.verification["u"] = VerificationStatus(phone_verified=True)
    engine = make_engine()
    assert await engine.decide("/payment-processing", make_session("u")) == RedirectTo(
        "/verify-contact"
    )
    provider.verification["u"] = VerificationStatus(phone_verified=True, email_verified=True)
    assert await engine.decide("/payment-processing", make_session("u")) == Allow()


@pytest.mark.asyncio
async def test_verification_fault_fails_closed(provider, make_engine, make_session) -> None:
    provider.roles["u"] = ["operation"]
    provider.verification["u"] = VerificationStatus(phone_verified=True)
    provider.failing.add("verification_status")
    decision = await make_engine().decide("/payment-request", make_session("u"))
    assert decision == RedirectTo("/verify-contact")


@pytest.mark.asyncio
async def test_step_up_is_checked_before_verification(provider, make_engine, make_session) -> None:
    provider.roles["u"] = ["operation"]
    provider.add_factor("u")
    decision = await make_engine().decide("/payment-request", make_session("u"))
    assert decision == RedirectTo("/mfa-challenge")


@pytest.mark.asyncio
async def test_approval_gate_when_enabled(provider, make_engine, make_session) -> None:
    provider.roles["u"] = ["operation"]
    engine = make_engine(require_approval=True)
    assert await engine.decide("/orders", make_session("u")) == RedirectTo("/pending-approval")
    assert await engine.decide("/pending-approval", make_session("u")) == Allow()

    provider.approval["u"] = "approved"
    assert await engine.decide("/orders", make_session("u")) == Allow()


@pytest.mark.asyncio
async def test_customers_skip_approval(provider, make_engine, make_session) -> None:
    provider.roles["u"] = ["customer"]
    engine = make_engine(require_approval=True)
    assert await engine.decide("/customer-dashboard", make_session("u")) == Allow()


@pytest.mark.asyncio
async def test_accessible_routes(provider, make_engine, make_session) -> None:
    provider.roles["u"] = ["translator"]
    engine = make_engine()
    routes = await engine.accessible_routes(make_session("u"))
    assert "/my-orders" in routes
    assert "/settings" not in routes
    assert await engine.accessible_routes(None) == frozenset()


def test_as_dict_shapes() -> None:
    assert as_dict(Allow()) == {"decision": "allow", "target": None, "reason": None}
    assert as_dict(RedirectTo("/x"))["target"] == "/x"
    assert as_dict(Deny(DenyReason.unauthenticated))["reason"] == "unauthenticated"
