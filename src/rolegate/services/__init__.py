"""
rolegate.services

Remediation and administration services (transaction owners).

Responsibilities:
- MFA enrollment, step-up challenge, backup codes and removal.
- Phone/e-mail verification codes.
- Privileged role and approval administration.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services commit their own transactions; routers only translate errors to HTTP.
