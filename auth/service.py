# auth/service.py
"""
Authentication service.

Handles:
- User registration
- Login (credential verification + session creation)
- Logout (session destruction)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from auth.errors import UserExistsError, WeakPasswordError
from auth.models import (
    Credential,
    GENERIC_LOGIN_FAILURE_MESSAGE,
    Success,
    UserRecord,
    VerificationResult,
    normalize_email,
)
from auth.password import PasswordHasher, is_password_strong
from auth.serialization import serialize_user
from auth.sessions import SessionStore
from auth.store import UserStore
from auth.verifier import CredentialVerifier

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a login attempt. token is set only on success."""
    result: VerificationResult
    token: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result.ok

    @property
    def user(self) -> Optional[UserRecord]:
        return self.result.user if isinstance(self.result, Success) else None


class AuthService:
    """
    Login, logout and registration on top of injected stores.

    Args:
        users: User record storage
        sessions: Session storage
        hasher: Password hasher (carries the bcrypt cost)
        generic_login_errors: Report every failed login with one message
            instead of telling a wrong email apart from a wrong password
    """

    def __init__(
        self,
        users: UserStore,
        sessions: SessionStore,
        hasher: Optional[PasswordHasher] = None,
        generic_login_errors: bool = False,
    ):
        self.users = users
        self.sessions = sessions
        self.hasher = hasher or PasswordHasher()
        self.verifier = CredentialVerifier(users, self.hasher)
        self.generic_login_errors = generic_login_errors

    def register(self, email: str, password: str) -> UserRecord:
        """
        Create a new user account.

        Raises:
            WeakPasswordError: If password doesn't meet requirements
            UserExistsError: If email already registered
            StoreUnavailableError: If the user store cannot be reached
        """
        is_strong, error_msg = is_password_strong(password)
        if not is_strong:
            raise WeakPasswordError(error_msg)

        email = normalize_email(email)
        if self.users.find_by_email(email):
            raise UserExistsError(f"User with email {email} already exists")

        user = UserRecord.new(email=email, password_hash=self.hasher.hash(password))
        self.users.add(user)

        _logger.info(f"Created user: {email}")
        return user

    def login(self, email: str, password: str) -> LoginResult:
        """
        Verify credentials and, on success, open a session.

        No session is created for a failed attempt.
        """
        result = self.verifier.verify(Credential(email=email, password=password))
        if not isinstance(result, Success):
            return LoginResult(result=result)

        token = self.sessions.create(serialize_user(result.user))
        return LoginResult(result=result, token=token)

    def logout(self, token: Optional[str]) -> None:
        """End the session for token, if there is one."""
        if not token:
            return
        self.sessions.destroy(token)
        _logger.info("Session logged out")

    def failure_message(self, result: VerificationResult) -> str:
        """User-facing message for a failed verification."""
        if self.generic_login_errors:
            return GENERIC_LOGIN_FAILURE_MESSAGE
        return result.message
