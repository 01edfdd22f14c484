"""
rolegate.policy.decisions

Access decision values.

Responsibilities:
- Define the `AccessDecision` tagged union: Allow | RedirectTo | Deny.
- Provide a flat dict view for logs and API responses.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from rolegate.auth.models import RouteKey


class DenyReason(enum.StrEnum):
    unauthenticated = "unauthenticated"
    role_unresolved = "role_unresolved"
    role_not_permitted = "role_not_permitted"


@dataclass(frozen=True, slots=True)
class Allow:
    pass


@dataclass(frozen=True, slots=True)
class RedirectTo:
    route: RouteKey


@dataclass(frozen=True, slots=True)
class Deny:
    reason: DenyReason


AccessDecision = Allow | RedirectTo | Deny


def as_dict(decision: AccessDecision) -> dict[str, Any]:
    if isinstance(decision, RedirectTo):
        return {"decision": "redirect", "target": decision.route, "reason": None}
    if isinstance(decision, Deny):
        return {"decision": "deny", "target": None, "reason": decision.reason.value}
    return {"decision": "allow", "target": None, "reason": None}
