"""
rolegate.services.codes

One-time code helpers shared by the MFA and verification services.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets


def hash_code(code: str) -> str:
    return hashlib.sha256(code.strip().upper().encode("utf-8")).hexdigest()


def matches(code: str, code_hash: str) -> bool:
    return hmac.compare_digest(hash_code(code), code_hash)


def numeric_code(digits: int = 6) -> str:
    low = 10 ** (digits - 1)
    return str(low + secrets.randbelow(9 * low))


def backup_code() -> str:
    return secrets.token_hex(4).upper()
