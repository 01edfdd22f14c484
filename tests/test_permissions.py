"""
tests.test_permissions

Permission table lookups.
"""

from __future__ import annotations

import pytest

from rolegate.auth.models import ContactChannel, Role
from rolegate.policy.permissions import DEFAULT_PERMISSIONS, PermissionTable


def test_can_access_matches_table_membership_for_every_role() -> None:
    table = PermissionTable()
    routes = table.known_routes() | {"/does-not-exist"}
    for role in Role:
        accessible = table.accessible_routes(role)
        for route in routes:
            assert table.can_access(role, route) == (route in accessible)


def test_every_role_has_an_explicit_entry() -> None:
    table = PermissionTable(permissions={Role.owner: ["/"]})
    # Roles missing from the source mapping resolve to the empty set, not a KeyError.
    assert table.accessible_routes(Role.customer) == frozenset()
    assert table.accessible_routes(Role.owner) == frozenset({"/"})


@pytest.mark.parametrize("role", [None, "", "superuser", 42])
def test_unmapped_role_resolves_to_empty_set(role) -> None:
    table = PermissionTable(always_allowed={"/mfa-challenge"})
    assert table.accessible_routes(role) == frozenset()
    assert table.can_access(role, "/") is False


def test_role_strings_are_accepted() -> None:
    table = PermissionTable()
    assert table.can_access("operation", "/orders") is True
    assert table.can_access("OPERATION", "/orders") is True


def test_operation_scenarios() -> None:
    table = PermissionTable()
    assert table.can_access(Role.operation, "/orders") is True
    assert table.can_access(Role.operation, "/settings") is False


def test_owner_may_open_wallet() -> None:
    assert PermissionTable().can_access(Role.owner, "/wallet") is True


def test_always_allowed_routes_are_granted_to_every_role() -> None:
    table = PermissionTable(always_allowed={"/mfa-challenge"})
    for role in Role:
        assert table.can_access(role, "/mfa-challenge")
    assert "/mfa-challenge" not in DEFAULT_PERMISSIONS[Role.customer]


def test_verification_requirements() -> None:
    table = PermissionTable()
    assert table.verification_required("/payment-request") == frozenset({ContactChannel.phone})
    assert table.verification_required("/orders") == frozenset()
