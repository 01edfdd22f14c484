"""
rolegate.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert a bearer token into a read-only `Session` (or None).
- Guard privileged endpoints by resolved role and satisfied step-up.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from rolegate.api.deps import access_engine_dep, settings_dep
from rolegate.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate, session_from_payload
from rolegate.auth.models import Role, Session
from rolegate.observability.logging import get_logger
from rolegate.policy.assurance import AssuranceState
from rolegate.policy.engine import AccessDecisionEngine
from rolegate.settings import Settings

log = get_logger(__name__)

_bearer = HTTPBearer(auto_error=False)


def optional_session(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(settings_dep),
) -> Session | None:
    # The decision endpoint classifies anonymous callers itself, so absence is not an error here.
    if creds is None or not creds.credentials:
        return None
    try:
        payload = decode_and_validate(cfg=JwtConfig.from_settings(settings), token=creds.credentials)
        return session_from_payload(payload)
    except JwtValidationError as e:
        log.info("session_token_rejected", error=str(e))
        return None


def get_session(session: Session | None = Depends(optional_session)) -> Session:
    if session is None:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Missing or invalid session")
    return session


def require_roles(*required: Role):
    required_set = frozenset(required)

    async def _dep(
        request: Request,
        session: Session = Depends(get_session),
        engine: AccessDecisionEngine = Depends(access_engine_dep),
    ) -> Session:
        resolution = await engine.roles.resolve(session.principal_id)
        if resolution.role is None or resolution.role not in required_set:
            raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Insufficient role")
        # Privileged actions always need a completed step-up when MFA is enrolled.
        result = await engine.assurance.check(session, route=request.url.path)
        if result.state == AssuranceState.required_pending:
            raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="MFA step-up required")
        return session

    return _dep


# --- Module Notes -----------------------------------------------------------
# Route-level gating for the UI shell goes through `/v1/access/decide`; these
# dependencies protect the service's own administrative endpoints.
