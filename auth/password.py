# auth/password.py
"""
Secure password hashing using bcrypt.

Bcrypt is designed for password hashing with:
- Automatic salt generation
- Configurable work factor (cost)
- Constant-time comparison in checkpw
"""

from __future__ import annotations

import bcrypt
import logging

_logger = logging.getLogger(__name__)

# Work factor (cost) - higher = slower but more secure
DEFAULT_BCRYPT_ROUNDS = 10
MIN_BCRYPT_ROUNDS = 4
MAX_BCRYPT_ROUNDS = 31
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """
    One-way salted hashing and verification.

    Holds no shared state besides the cost factor, so concurrent
    requests can hash in parallel without any locking.
    """

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS):
        if not MIN_BCRYPT_ROUNDS <= rounds <= MAX_BCRYPT_ROUNDS:
            raise ValueError(
                f"bcrypt rounds must be between {MIN_BCRYPT_ROUNDS} and {MAX_BCRYPT_ROUNDS}"
            )
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        A fresh salt is generated on every call, so hashing the same
        password twice yields two different strings.

        Args:
            password: Plain text password (at most 72 bytes as UTF-8)

        Returns:
            Bcrypt hash string (includes salt and cost)
        """
        if not password:
            raise ValueError("Password cannot be empty")

        encoded = password.encode("utf-8")
        # Older bcrypt releases silently truncate instead of raising
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = bcrypt.hashpw(encoded, salt)

        return hashed.decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """
        Verify a password against its hash.

        Args:
            password: Plain text password to verify
            password_hash: Stored bcrypt hash

        Returns:
            True if password matches, False otherwise (including malformed
            hashes and passwords longer than 72 bytes)
        """
        if not password or not password_hash:
            return False

        encoded = password.encode("utf-8")
        # Nothing longer than the limit was ever hashed
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False

        try:
            return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
        except (ValueError, TypeError) as e:
            _logger.warning(f"Password verification error: {e}")
            return False


def is_password_strong(password: str) -> tuple[bool, str]:
    """
    Check if a password meets minimum strength requirements.

    Requirements:
    - At least 8 characters
    - Contains at least one letter
    - Contains at least one digit

    Args:
        password: Password to check

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not password:
        return False, "Password cannot be empty"

    if len(password) < 8:
        return False, "Password must be at least 8 characters"

    # bcrypt only looks at the first 72 bytes
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return False, f"Password must be at most {MAX_PASSWORD_BYTES} bytes"

    has_letter = any(c.isalpha() for c in password)
    has_digit = any(c.isdigit() for c in password)

    if not has_letter:
        return False, "Password must contain at least one letter"

    if not has_digit:
        return False, "Password must contain at least one digit"

    return True, ""
