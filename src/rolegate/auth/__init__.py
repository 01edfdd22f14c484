"""
rolegate.auth

Authentication package.

Responsibilities:
- Domain types for principals, sessions, roles and MFA factors.
- Session token helpers and FastAPI session dependencies.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Authorization decisions live in `rolegate.policy`; this package only establishes who is asking.
