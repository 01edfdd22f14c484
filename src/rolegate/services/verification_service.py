"""
rolegate.services.verification_service

Contact verification service (phone / e-mail one-time codes).

Responsibilities:
- Issue a short-lived 6-digit code for a destination and hand it to a sender.
- Confirm a code and mark the channel verified.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.audit.events import EventType, SecurityEvent, Severity
from rolegate.audit.sink import AuditSink
from rolegate.auth.models import ContactChannel, VerificationStatus
from rolegate.db.models import utcnow
from rolegate.db.repositories.profiles import ProfileRepo
from rolegate.db.repositories.verification_codes import VerificationCodeRepo
from rolegate.observability.logging import get_logger
from rolegate.services.codes import hash_code, matches, numeric_code
from rolegate.services.errors import CodeExpiredError, InvalidCodeError
from rolegate.settings import Settings

log = get_logger(__name__)


class CodeSender(Protocol):
    async def send(self, *, channel: ContactChannel, destination: str, code: str) -> None: ...


class LoggingCodeSender:
    """
    Default sender: SMS/e-mail delivery is wired by the deployment. The code
    itself is only logged when `reveal` is set (dev environments).
    """

    def __init__(self, *, reveal: bool = False) -> None:
        self._reveal = reveal

    async def send(self, *, channel: ContactChannel, destination: str, code: str) -> None:
        log.info(
            "verification_code_issued",
            channel=channel.value,
            destination=_mask(destination),
            code=code,
            reveal=self._reveal,
        )


class ContactVerificationService:
    def __init__(
        self,
        *,
        session: AsyncSession,
        settings: Settings,
        audit: AuditSink,
        sender: CodeSender,
    ) -> None:
        self._session = session
        self._settings = settings
        self._audit = audit
        self._sender = sender

        self._profiles = ProfileRepo(session)
        self._codes = VerificationCodeRepo(session)

    async def status(self, *, principal_id: str) -> VerificationStatus:
        profile = await self._profiles.get(principal_id)
        if profile is None:
            return VerificationStatus()
        return VerificationStatus(
            phone_verified=profile.phone_verified,
            email_verified=profile.email_verified,
        )

    async def request_code(
        self, *, principal_id: str, channel: ContactChannel, destination: str
    ) -> datetime:
        destination = destination.strip()
        code = numeric_code()
        expires_at = utcnow() + timedelta(
            minutes=self._settings.verification_code_ttl_minutes
        )
        await self._profiles.set_contact(
            principal_id=principal_id, channel=channel, destination=destination
        )
        await self._codes.issue(
            principal_id=principal_id,
            channel=channel,
            destination=destination,
            code_hash=hash_code(code),
            expires_at=expires_at,
        )
        await self._session.commit()
        await self._sender.send(channel=channel, destination=destination, code=code)
        return expires_at

    async def confirm(self, *, principal_id: str, channel: ContactChannel, code: str) -> None:
        row = await self._codes.latest_open(principal_id=principal_id, channel=channel)
        if row is None:
            raise CodeExpiredError("no pending code; request a new one")
        if utcnow() > row.expires_at:
            await self._codes.consume(row)
            await self._session.commit()
            raise CodeExpiredError("code expired; request a new one")
        if not matches(code, row.code_hash):
            burned = await self._codes.register_failure(
                row, max_attempts=self._settings.verification_max_attempts
            )
            await self._session.commit()
            if burned:
                log.warning(
                    "verification_code_burned", principal_id=principal_id, channel=channel.value
                )
                raise CodeExpiredError("too many attempts; request a new code")
            raise InvalidCodeError("invalid verification code")

        await self._codes.consume(row)
        await self._profiles.mark_verified(principal_id=principal_id, channel=channel)
        await self._session.commit()
        self._audit.emit(
            SecurityEvent(
                event_type=EventType.contact_verified,
                severity=Severity.low,
                principal_id=principal_id,
                details={"channel": channel.value, "destination": _mask(row.destination)},
            )
        )


def _mask(destination: str) -> str:
    if len(destination) <= 4:
        return "*" * len(destination)
    return "*" * (len(destination) - 4) + destination[-4:]
