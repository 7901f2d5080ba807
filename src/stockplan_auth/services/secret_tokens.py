"""Opaque secrets: refresh tokens, reset codes and their storage digests.

Raw values are handed to the client exactly once; only the SHA-256 hex
digest is ever persisted.
"""

import hashlib
import secrets

REFRESH_TOKEN_BYTES = 32
RESET_CODE_DIGITS = 6


def generate_refresh_token(nbytes: int = REFRESH_TOKEN_BYTES) -> str:
    """Return a URL-safe random token carrying ``nbytes`` of entropy."""
    return secrets.token_urlsafe(nbytes)


def generate_reset_code() -> str:
    """Return a zero-padded numeric code, uniform over 000000-999999."""
    return f"{secrets.randbelow(10**RESET_CODE_DIGITS):0{RESET_CODE_DIGITS}d}"


def hash_secret(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
