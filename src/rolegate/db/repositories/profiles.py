"""
rolegate.db.repositories.profiles

Repository for `Profile` rows.

Responsibilities:
- Read verification, approval and MFA summary flags.
- Apply verification completion and contact changes.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.auth.models import ContactChannel
from rolegate.db.models import ApprovalStatus, Profile, utcnow


class ProfileRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, principal_id: str) -> Profile | None:
        return await self._session.get(Profile, principal_id)

    async def get_or_create(self, principal_id: str) -> Profile:
        profile = await self._session.get(Profile, principal_id, with_for_update=True)
        if profile is None:
            # New accounts start unverified and pending approval.
            profile = Profile(
                principal_id=principal_id,
                phone_verified=False,
                email_verified=False,
                approval_status=ApprovalStatus.pending,
                mfa_enabled=False,
            )
            self._session.add(profile)
            await self._session.flush()
        return profile

    async def set_contact(
        self, *, principal_id: str, channel: ContactChannel, destination: str
    ) -> Profile:
        # A new destination invalidates the previous verification.
        profile = await self.get_or_create(principal_id)
        if channel == ContactChannel.phone:
            if profile.phone_number != destination:
                profile.phone_number = destination
                profile.phone_verified = False
                profile.phone_verified_at = None
        elif profile.email != destination:
            profile.email = destination
            profile.email_verified = False
            profile.email_verified_at = None
        return profile

    async def mark_verified(self, *, principal_id: str, channel: ContactChannel) -> Profile:
        profile = await self.get_or_create(principal_id)
        now = utcnow()
        if channel == ContactChannel.phone:
            profile.phone_verified = True
            profile.phone_verified_at = now
        else:
            profile.email_verified = True
            profile.email_verified_at = now
        return profile

    async def set_mfa_enabled(self, *, principal_id: str, enabled: bool) -> Profile:
        profile = await self.get_or_create(principal_id)
        profile.mfa_enabled = enabled
        profile.mfa_enrollment_date = utcnow() if enabled else None
        return profile

    async def set_approval(self, *, principal_id: str, status: ApprovalStatus) -> Profile:
        profile = await self.get_or_create(principal_id)
        profile.approval_status = status
        return profile
