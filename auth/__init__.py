# auth/__init__.py
"""
Authentication module.

Provides:
- User, credential and session models
- Password hashing with bcrypt
- Credential verification against a UserStore
- Token-keyed session storage
- A per-request authentication gate
"""

from auth.errors import AuthError, StoreUnavailableError, UserExistsError, WeakPasswordError
from auth.gate import AuthenticationGate
from auth.models import (
    Credential,
    Deny,
    DenyReason,
    IdentityReference,
    PasswordMismatch,
    Permit,
    Session,
    Success,
    UserNotFound,
    UserRecord,
)
from auth.password import PasswordHasher
from auth.service import AuthService, LoginResult
from auth.sessions import InMemorySessionStore, SessionStore
from auth.store import InMemoryUserStore, UserStore
from auth.verifier import CredentialVerifier

__all__ = [
    "AuthError",
    "StoreUnavailableError",
    "UserExistsError",
    "WeakPasswordError",
    "AuthenticationGate",
    "Credential",
    "Deny",
    "DenyReason",
    "IdentityReference",
    "PasswordMismatch",
    "Permit",
    "Session",
    "Success",
    "UserNotFound",
    "UserRecord",
    "PasswordHasher",
    "AuthService",
    "LoginResult",
    "InMemorySessionStore",
    "SessionStore",
    "InMemoryUserStore",
    "UserStore",
    "CredentialVerifier",
]
