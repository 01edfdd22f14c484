"""
rolegate.policy

Route authorization and session-assurance policy.

Responsibilities:
- Static role -> route permission table.
- Role resolution, MFA step-up, contact-verification and approval gates.
- The access-decision engine composing the gates, and the session-scoped
  navigation guard that re-evaluates decisions on role changes.
"""

# Package marker; import from submodules.


# --- Module Notes -----------------------------------------------------------
# Nothing in this package performs navigation or raises on provider faults; the
# only output is an `AccessDecision`.
