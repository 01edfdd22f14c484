"""
rolegate.db.models

Identity store schema.

Responsibilities:
- Define ORM models backing the identity provider:
  - UserRole: role rows per principal (a principal may hold several)
  - Profile: contact verification, approval and MFA summary flags
  - MfaFactorRow / BackupCode: second-factor credentials
  - VerificationCode: pending phone/email one-time codes
  - SecurityEventRow: append-only security audit trail
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Boolean, Enum, Index, Integer, String, UniqueConstraint, Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column

from rolegate.auth.models import ContactChannel, FactorStatus, FactorType
from rolegate.db.base import Base


def utcnow() -> datetime:
    # Columns hold naive UTC; every timestamp written or compared goes through here.
    return datetime.now(tz=UTC).replace(tzinfo=None)


class ApprovalStatus(enum.StrEnum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class UserRole(Base):
    __tablename__ = "user_roles"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    principal_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    # Free text on purpose: unknown values are filtered by the resolver, not rejected at write.
    role: Mapped[str] = mapped_column(String(32), nullable=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    __table_args__ = (UniqueConstraint("principal_id", "role", name="uq_user_roles_principal_role"),)


class Profile(Base):
    __tablename__ = "profiles"

    principal_id: Mapped[str] = mapped_column(String(128), primary_key=True)

    phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    phone_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    phone_verified_at: Mapped[datetime | None] = mapped_column(nullable=True)

    email: Mapped[str | None] = mapped_column(String(256), nullable=True)
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    email_verified_at: Mapped[datetime | None] = mapped_column(nullable=True)

    approval_status: Mapped[ApprovalStatus] = mapped_column(
        Enum(ApprovalStatus), nullable=False, default=ApprovalStatus.pending
    )

    mfa_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    mfa_enrollment_date: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)


class MfaFactorRow(Base):
    __tablename__ = "mfa_factors"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    principal_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    type: Mapped[FactorType] = mapped_column(Enum(FactorType), nullable=False)
    status: Mapped[FactorStatus] = mapped_column(Enum(FactorStatus), nullable=False, index=True)
    secret: Mapped[str] = mapped_column(String(64), nullable=False)
    friendly_name: Mapped[str | None] = mapped_column(String(128), nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    verified_at: Mapped[datetime | None] = mapped_column(nullable=True)
    # TOTP step (unix time // 30) of the last accepted code; older or equal steps are replays.
    last_used_timecode: Mapped[int | None] = mapped_column(Integer, nullable=True)


class BackupCode(Base):
    __tablename__ = "mfa_backup_codes"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    principal_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    code_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)


class VerificationCode(Base):
    __tablename__ = "verification_codes"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    principal_id: Mapped[str] = mapped_column(String(128), nullable=False)
    channel: Mapped[ContactChannel] = mapped_column(Enum(ContactChannel), nullable=False)
    destination: Mapped[str] = mapped_column(String(256), nullable=False)
    code_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    consumed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    __table_args__ = (Index("ix_verification_codes_principal_channel", "principal_id", "channel"),)


class SecurityEventRow(Base):
    __tablename__ = "security_events"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    event_type: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    severity: Mapped[str] = mapped_column(String(16), nullable=False)
    principal_id: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, index=True)


# --- Module Notes -----------------------------------------------------------
# Secrets and codes: TOTP secrets are stored as issued (they must be recoverable to
# verify codes); backup and verification codes are stored as SHA-256 digests only.
