"""Password hashing service using bcrypt.

Provides secure password hashing and verification with strength
validation.
"""

import base64
import hashlib
from functools import lru_cache

import bcrypt

from stockplan_auth.exceptions import WeakPasswordError

# bcrypt only looks at the first 72 bytes and rejects longer input
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    """Encode a password for bcrypt.

    Input over 72 bytes is replaced by its base64 SHA-256 digest (44 bytes)
    so every byte of a long password counts. Shorter input is passed through
    unchanged, so existing hashes keep verifying.
    """
    encoded = password.encode("utf-8")
    if len(encoded) <= BCRYPT_MAX_BYTES:
        return encoded
    return base64.b64encode(hashlib.sha256(encoded).digest())


@lru_cache(maxsize=8)
def _dummy_hash(rounds: int) -> bytes:
    return bcrypt.hashpw(b"stockplan-dummy-password", bcrypt.gensalt(rounds=rounds))


class PasswordHashingService:
    """Service for secure password hashing and verification.

    Uses bcrypt for password hashing with configurable work factor.
    Also provides password strength validation.

    Examples
    --------
    >>> service = PasswordHashingService(rounds=4)
    >>> hashed = service.hash("my_secure_password")
    >>> service.verify("my_secure_password", hashed)
    True
    >>> service.verify("wrong_password", hashed)
    False
    """

    # Password requirements
    MIN_LENGTH = 8

    def __init__(self, rounds: int = 12):
        """Initialize the password hashing service.

        Parameters
        ----------
        rounds
            The bcrypt work factor (log2 of iterations). Default is 12.
            Tests pass the minimum (4) to stay fast.
        """
        self._rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a plaintext password.

        Parameters
        ----------
        password
            The plaintext password to hash

        Returns
        -------
        The bcrypt hash as a string

        Raises
        ------
        WeakPasswordError
            If password doesn't meet requirements
        """
        self.validate_strength(password)
        salt = bcrypt.gensalt(rounds=self._rounds)
        hashed = bcrypt.hashpw(_password_bytes(password), salt)
        return hashed.decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against a hash.

        Parameters
        ----------
        password
            The plaintext password to check
        password_hash
            The bcrypt hash to verify against

        Returns
        -------
        True if password matches, False otherwise
        """
        try:
            return bcrypt.checkpw(
                _password_bytes(password),
                password_hash.encode("utf-8"),
            )
        except (ValueError, TypeError):
            # Invalid hash format
            return False

    def verify_against_dummy(self, password: str) -> None:
        """Run a full bcrypt check that always fails.

        Used when there is no stored hash to compare against, so the caller
        spends the same work factor as for a real mismatch.
        """
        bcrypt.checkpw(_password_bytes(password), _dummy_hash(self._rounds))

    def validate_strength(self, password: str) -> None:
        """Validate that a password meets strength requirements.

        Current requirements:
        - Minimum 8 characters

        Raises
        ------
        WeakPasswordError
            If password doesn't meet requirements
        """
        if len(password) < self.MIN_LENGTH:
            msg = f"Password must be at least {self.MIN_LENGTH} characters"
            raise WeakPasswordError(msg)

    def needs_rehash(self, password_hash: str) -> bool:
        """Check if a password hash was created with a different work factor."""
        try:
            # bcrypt format: $2b$XX$...
            parts = password_hash.split("$")
            if len(parts) >= 3:
                return int(parts[2]) != self._rounds
        except (ValueError, IndexError):
            pass
        return True
