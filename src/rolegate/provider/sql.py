"""
rolegate.provider.sql

SQL-backed identity provider.

Responsibilities:
- Serve role rows, MFA factors, verification and approval flags from the identity store.
- Wrap every backend failure as `IdentityProviderError`.
- Expose the change feed for `user_roles` subscriptions.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rolegate.auth.models import AssuranceLevel, MfaFactor, Session, VerificationStatus
from rolegate.db.models import ApprovalStatus
from rolegate.db.repositories.factors import FactorRepo
from rolegate.db.repositories.profiles import ProfileRepo
from rolegate.db.repositories.roles import RoleRepo
from rolegate.provider.base import IdentityProviderError
from rolegate.provider.changes import ChangeCallback, ChangeFeed, Subscription


class SqlIdentityProvider:
    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        feed: ChangeFeed,
    ) -> None:
        self._session_factory = session_factory
        self._feed = feed

    async def role_rows(self, principal_id: str) -> list[str]:
        try:
            async with self._session_factory() as session:
                return await RoleRepo(session).list_for_principal(principal_id)
        except SQLAlchemyError as e:
            raise IdentityProviderError(f"role lookup failed: {e}") from e

    async def list_factors(self, principal_id: str) -> list[MfaFactor]:
        try:
            async with self._session_factory() as session:
                rows = await FactorRepo(session).list_for_principal(principal_id)
        except SQLAlchemyError as e:
            raise IdentityProviderError(f"factor listing failed: {e}") from e
        return [
            MfaFactor(
                id=str(r.id),
                principal_id=r.principal_id,
                type=r.type,
                status=r.status,
                friendly_name=r.friendly_name,
            )
            for r in rows
        ]

    async def assurance_level(self, session: Session) -> AssuranceLevel:
        # Sessions are signed tokens; the level they carry is the provider's answer.
        return session.assurance_level

    async def verification_status(self, principal_id: str) -> VerificationStatus:
        try:
            async with self._session_factory() as session:
                profile = await ProfileRepo(session).get(principal_id)
        except SQLAlchemyError as e:
            raise IdentityProviderError(f"profile lookup failed: {e}") from e
        if profile is None:
            return VerificationStatus()
        return VerificationStatus(
            phone_verified=profile.phone_verified is True,
            email_verified=profile.email_verified is True,
        )

    async def approval_status(self, principal_id: str) -> str:
        try:
            async with self._session_factory() as session:
                profile = await ProfileRepo(session).get(principal_id)
        except SQLAlchemyError as e:
            raise IdentityProviderError(f"profile lookup failed: {e}") from e
        if profile is None:
            return ApprovalStatus.pending.value
        return profile.approval_status.value

    def subscribe(
        self, *, principal_id: str, table: str, callback: ChangeCallback
    ) -> Subscription:
        return self._feed.subscribe(principal_id=principal_id, table=table, callback=callback)


# --- Module Notes -----------------------------------------------------------
# Each call opens its own short-lived session so provider reads never share a
# transaction with the request that triggered them.
