"""
rolegate.auth.models

Auth domain models.

Responsibilities:
- Define the closed role and assurance-level enumerations.
- Define the read-only session projection handed to the policy layer.
- Define MFA factor and contact-verification value types.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import UTC, datetime

# Navigable application area, e.g. "/orders".
RouteKey = str


class Role(enum.StrEnum):
    owner = "owner"
    master = "master"
    admin = "admin"
    operation = "operation"
    financeiro = "financeiro"
    customer = "customer"
    translator = "translator"

    @classmethod
    def parse(cls, value: object) -> Role | None:
        # Role rows are free text in storage; anything outside the enum is ignored.
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class AssuranceLevel(enum.StrEnum):
    aal1 = "aal1"
    aal2 = "aal2"


class ContactChannel(enum.StrEnum):
    phone = "phone"
    email = "email"


class FactorType(enum.StrEnum):
    totp = "totp"
    backup_codes = "backup_codes"


class FactorStatus(enum.StrEnum):
    unverified = "unverified"
    verified = "verified"


@dataclass(frozen=True, slots=True)
class Session:
    """
    Read-only projection of one authenticated browser context. The role is
    never carried here; it is resolved from the role store on every decision.
    """

    session_id: str
    principal_id: str
    assurance_level: AssuranceLevel
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(tz=UTC)) >= self.expires_at


@dataclass(frozen=True, slots=True)
class MfaFactor:
    id: str
    principal_id: str
    type: FactorType
    status: FactorStatus
    friendly_name: str | None = None

    @property
    def is_verified(self) -> bool:
        return self.status == FactorStatus.verified


@dataclass(frozen=True, slots=True)
class VerificationStatus:
    phone_verified: bool = False
    email_verified: bool = False


# --- Module Notes -----------------------------------------------------------
# Keep these types free of persistence concerns; ORM rows live in `rolegate.db.models`.
