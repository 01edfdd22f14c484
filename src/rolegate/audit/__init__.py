"""
rolegate.audit

Security audit package.

Responsibilities:
- Security event types.
- Fire-and-forget sinks that never block or alter an access decision.
"""

# Package marker.
