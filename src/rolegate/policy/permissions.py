"""
rolegate.policy.permissions

Static role -> route permission table.

Responsibilities:
- Hold the per-role route sets (every role has an explicit entry).
- Answer `accessible_routes` / `can_access` without I/O or exceptions.
- Declare which routes additionally require contact verification.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from rolegate.auth.models import ContactChannel, Role, RouteKey

_STAFF_COMMON: frozenset[RouteKey] = frozenset(
    {"/", "/calendar", "/notifications", "/announcements", "/chat"}
)

DEFAULT_PERMISSIONS: Mapping[Role, frozenset[RouteKey]] = {
    Role.owner: _STAFF_COMMON
    | {
        "/orders",
        "/delivered-orders",
        "/documents",
        "/team",
        "/productivity",
        "/financial",
        "/company-costs",
        "/service-provider-costs",
        "/wallet",
        "/reports",
        "/timesheet",
        "/ai-analytics",
        "/settings",
        "/security",
        "/registration-approvals",
        "/owner-final-approval",
        "/payment-processing",
        "/creative-studio",
    },
    Role.master: _STAFF_COMMON
    | {
        "/orders",
        "/delivered-orders",
        "/documents",
        "/team",
        "/productivity",
        "/financial",
        "/wallet",
        "/reports",
        "/timesheet",
        "/ai-analytics",
        "/settings",
        "/registration-approvals",
        "/master-protocol-approvals",
        "/creative-studio",
    },
    Role.admin: _STAFF_COMMON
    | {
        "/delivered-orders",
        "/documents",
        "/team",
        "/productivity",
        "/reports",
        "/timesheet",
        "/settings",
    },
    Role.operation: _STAFF_COMMON
    | {
        "/orders",
        "/my-orders",
        "/delivered-orders",
        "/wallet",
        "/productivity",
        "/payment-request",
        "/operation-protocol-data",
    },
    Role.financeiro: _STAFF_COMMON
    | {
        "/financial",
        "/contas-a-pagar",
        "/contas-a-receber",
        "/payment-processing",
        "/payment-receipts",
        "/fechamento",
        "/reports",
    },
    Role.customer: frozenset(
        {"/customer-dashboard", "/customer-requests", "/customer-pendency-request"}
    ),
    Role.translator: frozenset({"/my-orders", "/wallet", "/payment-request", "/calendar"}),
}

# Routes that move money require a verified contact on top of role permission.
CONTACT_VERIFICATION_ROUTES: Mapping[RouteKey, frozenset[ContactChannel]] = {
    "/payment-request": frozenset({ContactChannel.phone}),
    "/payment-receipts": frozenset({ContactChannel.phone}),
    "/payment-processing": frozenset({ContactChannel.phone, ContactChannel.email}),
}


class PermissionTable:
    """
    Pure lookup over a frozen role -> routes mapping.

    `always_allowed` routes (the remediation screens) are granted to every
    known role; an unknown role gets nothing, not even those.
    """

    def __init__(
        self,
        permissions: Mapping[Role, Iterable[RouteKey]] | None = None,
        *,
        always_allowed: Iterable[RouteKey] = (),
        verification_routes: Mapping[RouteKey, Iterable[ContactChannel]] | None = None,
    ) -> None:
        source = DEFAULT_PERMISSIONS if permissions is None else permissions
        extra = frozenset(always_allowed)
        # Every role in the enumeration gets an explicit entry, possibly empty.
        self._table: dict[Role, frozenset[RouteKey]] = {
            role: frozenset(source.get(role, ())) | extra for role in Role
        }
        vr = CONTACT_VERIFICATION_ROUTES if verification_routes is None else verification_routes
        self._verification: dict[RouteKey, frozenset[ContactChannel]] = {
            route: frozenset(channels) for route, channels in vr.items()
        }

    def accessible_routes(self, role: Role | str | None) -> frozenset[RouteKey]:
        parsed = role if isinstance(role, Role) else Role.parse(role)
        if parsed is None:
            return frozenset()
        return self._table.get(parsed, frozenset())

    def can_access(self, role: Role | str | None, route: RouteKey) -> bool:
        return route in self.accessible_routes(role)

    def verification_required(self, route: RouteKey) -> frozenset[ContactChannel]:
        return self._verification.get(route, frozenset())

    def known_routes(self) -> frozenset[RouteKey]:
        return frozenset().union(*self._table.values())
