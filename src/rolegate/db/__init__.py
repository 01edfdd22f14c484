"""
rolegate.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, and repositories for the identity store.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Only `rolegate.provider.sql` and the remediation services read these tables; the
# policy layer sees them through the `IdentityProvider` protocol.
