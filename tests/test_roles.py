"""
tests.test_roles

Role resolution: deterministic selection and fail-closed behavior.
"""

from __future__ import annotations

import pytest

from rolegate.auth.models import Role
from rolegate.policy.roles import RolePriority, RoleResolver, select_role
from rolegate.provider.base import USER_ROLES_TABLE
from rolegate.provider.changes import ChangeEvent


@pytest.mark.asyncio
async def test_single_role(provider) -> None:
    provider.roles["u"] = ["operation"]
    resolution = await RoleResolver(provider=provider).resolve("u")
    assert resolution.role == Role.operation
    assert not resolution.unknown


@pytest.mark.asyncio
async def test_multiple_roles_pick_lowest_value_first(provider) -> None:
    provider.roles["u"] = ["operation", "master", "owner"]
    resolution = await RoleResolver(provider=provider).resolve("u")
    assert resolution.role == Role.master


@pytest.mark.asyncio
async def test_privilege_priority_is_explicit(provider) -> None:
    provider.roles["u"] = ["operation", "master", "owner"]
    resolution = await RoleResolver(provider=provider, priority=RolePriority.privilege).resolve("u")
    assert resolution.role == Role.owner


@pytest.mark.asyncio
async def test_unknown_rows_are_ignored(provider) -> None:
    provider.roles["u"] = ["superuser", "translator"]
    resolution = await RoleResolver(provider=provider).resolve("u")
    assert resolution.role == Role.translator


@pytest.mark.asyncio
async def test_no_rows_is_unknown(provider) -> None:
    resolution = await RoleResolver(provider=provider).resolve("nobody")
    assert resolution.unknown
    assert resolution.fault is None


@pytest.mark.asyncio
async def test_provider_error_is_unknown_not_raised(provider) -> None:
    provider.roles["u"] = ["owner"]
    provider.failing.add("role_rows")
    resolution = await RoleResolver(provider=provider).resolve("u")
    assert resolution.unknown
    assert "unavailable" in (resolution.fault or "")


def test_select_role_empty() -> None:
    assert select_role([], RolePriority.alphabetical) is None


@pytest.mark.asyncio
async def test_watch_delivers_role_changes(provider) -> None:
    seen: list[ChangeEvent] = []

    async def on_change(event: ChangeEvent) -> None:
        seen.append(event)

    sub = RoleResolver(provider=provider).watch("u", on_change)
    await provider.feed.publish(ChangeEvent(table=USER_ROLES_TABLE, principal_id="u", action="UPDATE"))
    await provider.feed.publish(ChangeEvent(table=USER_ROLES_TABLE, principal_id="other", action="UPDATE"))
    sub.close()
    await provider.feed.publish(ChangeEvent(table=USER_ROLES_TABLE, principal_id="u", action="DELETE"))

    assert [e.action for e in seen] == ["UPDATE"]
