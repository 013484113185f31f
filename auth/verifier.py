# auth/verifier.py
"""
Credential verification.

Resolves the submitted email to a user record and checks the password
against the stored hash. Outcomes are returned as VerificationResult
values; only store outages raise.
"""

from __future__ import annotations

import logging

from auth.models import (
    Credential,
    PasswordMismatch,
    Success,
    UserNotFound,
    VerificationResult,
    normalize_email,
)
from auth.password import PasswordHasher
from auth.store import UserStore

_logger = logging.getLogger(__name__)


class CredentialVerifier:
    """Checks an email/password pair against a UserStore."""

    def __init__(self, users: UserStore, hasher: PasswordHasher):
        self.users = users
        self.hasher = hasher

    def verify(self, credential: Credential) -> VerificationResult:
        """
        Verify a login credential.

        Args:
            credential: Submitted email and password

        Returns:
            Success(user), UserNotFound or PasswordMismatch

        Raises:
            StoreUnavailableError: If the user store cannot be queried
        """
        email = normalize_email(credential.email)
        user = self.users.find_by_email(email)

        # No hash to compare against. This returns faster than a real
        # check, so response time reveals whether the email exists.
        if user is None:
            _logger.warning(f"Login attempt for non-existent user: {email}")
            return UserNotFound(email=email)

        if not self.hasher.verify(credential.password, user.password_hash):
            _logger.warning(f"Invalid password for user: {email}")
            return PasswordMismatch(email=email)

        _logger.info(f"User authenticated: {email}")
        return Success(user=user)
