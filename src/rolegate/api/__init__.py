"""
rolegate.api

HTTP API package.

Responsibilities:
- App factory, dependencies and routers exposing the access-decision engine.
"""

# Package marker.
