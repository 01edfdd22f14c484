"""
tests.test_mfa_service

MfaService checks that hold without the HTTP layer in front.
"""

from __future__ import annotations

import pyotp
import pytest

from rolegate.auth.models import AssuranceLevel, FactorType
from rolegate.db.repositories.factors import FactorRepo
from rolegate.services.errors import InvalidCodeError, StepUpRequiredError
from rolegate.services.mfa_service import MfaService


async def _verified_factor(db, principal_id: str) -> str:
    repo = FactorRepo(db)
    row = await repo.create(
        principal_id=principal_id, type=FactorType.totp, secret=pyotp.random_base32()
    )
    await repo.mark_verified(row)
    await db.commit()
    return row.secret


@pytest.mark.asyncio
async def test_enrollment_needs_aal2_once_a_factor_exists(
    running_app, make_session, sink
) -> None:
    async with running_app() as (app, _):
        async with app.state.sessionmaker() as db:
            await _verified_factor(db, "owner-1")
            service = MfaService(session=db, settings=app.state.settings, audit=sink)

            with pytest.raises(StepUpRequiredError):
                await service.enroll_totp(session=make_session("owner-1"))
            with pytest.raises(StepUpRequiredError):
                await service.verify_enrollment(
                    session=make_session("owner-1"), factor_id="whatever", code="123456"
                )

            enrollment = await service.enroll_totp(
                session=make_session("owner-1", aal=AssuranceLevel.aal2)
            )
            assert enrollment.secret


@pytest.mark.asyncio
async def test_disable_needs_aal2_and_fresh_code(running_app, make_session, sink) -> None:
    async with running_app() as (app, _):
        async with app.state.sessionmaker() as db:
            secret = await _verified_factor(db, "owner-1")
            service = MfaService(session=db, settings=app.state.settings, audit=sink)
            code = pyotp.TOTP(secret).now()

            with pytest.raises(StepUpRequiredError):
                await service.disable(session=make_session("owner-1"), code=code)

            aal2 = make_session("owner-1", aal=AssuranceLevel.aal2)
            assert await service.disable(session=aal2, code=code) == 1


@pytest.mark.asyncio
async def test_first_enrollment_is_open_at_aal1(running_app, make_session, sink) -> None:
    async with running_app() as (app, _):
        async with app.state.sessionmaker() as db:
            service = MfaService(session=db, settings=app.state.settings, audit=sink)
            session = make_session("op-1")

            enrollment = await service.enroll_totp(session=session)
            totp = pyotp.TOTP(enrollment.secret)
            with pytest.raises(InvalidCodeError):
                await service.verify_enrollment(
                    session=session, factor_id=enrollment.factor_id, code="abcdef"
                )
            await service.verify_enrollment(
                session=session, factor_id=enrollment.factor_id, code=totp.now()
            )

            status = await service.status(principal_id="op-1", role=None)
            assert status.enabled is True
