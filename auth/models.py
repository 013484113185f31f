# auth/models.py
"""
Identity, credential and session models for authentication.

Result types (VerificationResult, GateDecision) are plain dataclasses so
callers branch on them with isinstance() instead of catching exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Union
import uuid


INCORRECT_EMAIL_MESSAGE = "Incorrect email."
INCORRECT_PASSWORD_MESSAGE = "Incorrect password."
GENERIC_LOGIN_FAILURE_MESSAGE = "Invalid email or password."


def normalize_email(email: str) -> str:
    """Lowercase and strip an email so lookups are exact-match."""
    return email.lower().strip()


@dataclass(frozen=True)
class Credential:
    """
    Email + password pair submitted on login.

    Lives only for the duration of one login request. The password is
    kept out of repr() so it never lands in a log line or traceback.
    """
    email: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class IdentityReference:
    """Minimal handle stored inside a session. Never carries the hash."""
    user_id: str


@dataclass
class UserRecord:
    """
    User account record.

    Attributes:
        id: Unique user ID (UUID)
        email: User's email (unique, used for login)
        password_hash: Bcrypt-hashed password
        created_at: Account creation timestamp
    """
    id: str
    email: str
    password_hash: str = field(repr=False)
    created_at: datetime = field(default_factory=datetime.utcnow)

    @classmethod
    def new(cls, email: str, password_hash: str) -> UserRecord:
        """Create a new user record with generated ID."""
        if not password_hash:
            raise ValueError("password_hash is required")
        return cls(
            id=str(uuid.uuid4()),
            email=normalize_email(email),
            password_hash=password_hash,
            created_at=datetime.utcnow(),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary (excludes password_hash for safety)."""
        return {
            "id": self.id,
            "email": self.email,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class Session:
    """
    Login session.

    Attributes:
        token: Opaque session token (used as cookie value)
        identity: Reference to the logged-in user
        created_at: Session creation timestamp
        expires_at: Expiry timestamp, None when sessions never expire
    """
    token: str = field(repr=False)
    identity: IdentityReference
    created_at: datetime = field(default_factory=datetime.utcnow)
    expires_at: Optional[datetime] = None

    @classmethod
    def new(
        cls,
        token: str,
        identity: IdentityReference,
        ttl_seconds: Optional[int] = None,
    ) -> Session:
        now = datetime.utcnow()
        expires_at = now + timedelta(seconds=ttl_seconds) if ttl_seconds else None
        return cls(token=token, identity=identity, created_at=now, expires_at=expires_at)

    @property
    def is_valid(self) -> bool:
        """Check if session is still valid (not expired)."""
        if self.expires_at is None:
            return True
        return datetime.utcnow() < self.expires_at


# =============================================================================
# Verification results
# =============================================================================


@dataclass(frozen=True)
class Success:
    """Credentials matched a stored user."""
    user: UserRecord
    ok = True


@dataclass(frozen=True)
class UserNotFound:
    """No user is registered under the submitted email."""
    email: str
    ok = False
    message = INCORRECT_EMAIL_MESSAGE


@dataclass(frozen=True)
class PasswordMismatch:
    """The user exists but the password did not verify."""
    email: str
    ok = False
    message = INCORRECT_PASSWORD_MESSAGE


VerificationResult = Union[Success, UserNotFound, PasswordMismatch]


# =============================================================================
# Gate decisions
# =============================================================================


class DenyReason(str, Enum):
    """Why the gate refused a request."""
    NO_TOKEN = "no_token"
    INVALID_SESSION = "invalid_session"
    USER_DELETED = "user_deleted"


@dataclass(frozen=True)
class Permit:
    user: UserRecord


@dataclass(frozen=True)
class Deny:
    reason: DenyReason

    @property
    def stale_session(self) -> bool:
        """True when a cookie was presented but no longer maps to a live login."""
        return self.reason is not DenyReason.NO_TOKEN


GateDecision = Union[Permit, Deny]
