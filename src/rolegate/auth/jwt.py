"""
rolegate.auth.jwt

Session token issuing and validation helpers.

Responsibilities:
- Issue short-lived session JWTs carrying the session id and assurance level.
- Decode and validate JWTs with strict claim requirements (iss/aud/exp/iat/sub/sid/aal).
- Project a validated payload into the read-only `Session` type.

Note:
- The role is deliberately absent from the token; it is always read server-side.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from rolegate.auth.models import AssuranceLevel, Session
from rolegate.settings import Settings


@dataclass(frozen=True, slots=True)
class JwtConfig:
    # Algorithm/issuer/audience are enforced during decoding.
    alg: str
    issuer: str
    audience: str
    secret: str

    @classmethod
    def from_settings(cls, settings: Settings) -> JwtConfig:
        return cls(
            alg=settings.jwt_alg,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            secret=settings.jwt_secret,
        )


class JwtValidationError(Exception):
    pass


def issue_token(
    *,
    cfg: JwtConfig,
    subject: str,
    aal: AssuranceLevel = AssuranceLevel.aal1,
    session_id: str | None = None,
    ttl: timedelta = timedelta(hours=1),
) -> str:
    now = datetime.now(tz=UTC)
    payload: dict[str, Any] = {
        "iss": cfg.issuer,
        "aud": cfg.audience,
        "sub": subject,
        "sid": session_id or str(uuid.uuid4()),
        "aal": aal.value,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    return jwt.encode(payload, cfg.secret, algorithm=cfg.alg)


def decode_and_validate(*, cfg: JwtConfig, token: str) -> dict[str, Any]:
    try:
        # jwt.decode enforces signature + registered claims (issuer/audience/exp, etc.).
        return jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            issuer=cfg.issuer,
            audience=cfg.audience,
            options={
                "require": ["exp", "iat", "iss", "aud", "sub", "sid", "aal"],
            },
        )
    except InvalidTokenError as e:
        raise JwtValidationError(str(e)) from e


def session_from_payload(payload: dict[str, Any]) -> Session:
    subject = str(payload.get("sub", ""))
    if not subject:
        raise JwtValidationError("missing subject")
    try:
        aal = AssuranceLevel(str(payload["aal"]))
    except ValueError as e:
        raise JwtValidationError(f"unknown assurance level: {payload['aal']!r}") from e
    return Session(
        session_id=str(payload["sid"]),
        principal_id=subject,
        assurance_level=aal,
        created_at=datetime.fromtimestamp(int(payload["iat"]), tz=UTC),
        expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=UTC),
    )


def elevate(*, cfg: JwtConfig, session: Session, ttl: timedelta) -> str:
    # Step-up keeps the session id so audit trails can follow one browser context.
    return issue_token(
        cfg=cfg,
        subject=session.principal_id,
        aal=AssuranceLevel.aal2,
        session_id=session.session_id,
        ttl=ttl,
    )


# --- Module Notes -----------------------------------------------------------
# Token issuing is used by:
# - `api/routers/dev_auth.py` (dev convenience)
# - `services/mfa_service.py` (step-up to aal2)
