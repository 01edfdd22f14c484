"""
rolegate.db.repositories

Repository package.

Responsibilities:
- Group data-access repositories for the identity store.
"""

# Package marker; repositories are imported directly from submodules.


# --- Module Notes -----------------------------------------------------------
# Repositories are intentionally thin; policy and remediation logic belongs elsewhere.
