"""
rolegate.provider

Identity/session provider boundary.

Responsibilities:
- Define the `IdentityProvider` protocol consumed by the policy gates.
- Provide the in-process change feed used for live role updates.
- Provide the SQL-backed provider implementation.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Gates depend on the protocol only, so a hosted identity service can be swapped in
# without touching `rolegate.policy`.
