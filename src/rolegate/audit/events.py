"""
rolegate.audit.events

Security event value types.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class Severity(enum.StrEnum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class EventType(enum.StrEnum):
    mfa_bypass_attempt = "mfa_bypass_attempt"
    mfa_enrollment = "mfa_enrollment"
    mfa_challenge_success = "mfa_challenge_success"
    mfa_challenge_failed = "mfa_challenge_failed"
    mfa_disabled = "mfa_disabled"
    backup_code_used = "backup_code_used"
    contact_verified = "contact_verified"
    role_changed = "role_changed"


@dataclass(frozen=True, slots=True)
class SecurityEvent:
    event_type: EventType
    severity: Severity
    principal_id: str | None
    details: dict[str, Any] = field(default_factory=dict)
