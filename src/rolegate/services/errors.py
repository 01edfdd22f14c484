"""
rolegate.services.errors

Error types raised by remediation services.
"""

from __future__ import annotations


class RemediationError(Exception):
    pass


class InvalidCodeError(RemediationError):
    pass


class CodeExpiredError(RemediationError):
    pass


class FactorNotFoundError(RemediationError):
    pass


class DeliveryError(RemediationError):
    pass


class StepUpRequiredError(RemediationError):
    pass
