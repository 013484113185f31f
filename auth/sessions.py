# auth/sessions.py
"""
Session storage.

Maps an opaque session token to the IdentityReference of the logged-in
user. Only the token ever leaves the server (as a cookie).

Lifecycle per token: created -> active (each successful resolve) ->
destroyed (logout, revocation or expiry). A destroyed token never
resolves again.
"""

from __future__ import annotations

import logging
import secrets
import threading
from typing import Optional, Protocol

from auth.models import IdentityReference, Session

_logger = logging.getLogger(__name__)

# 32 random bytes -> 43 URL-safe base64 characters, safe as a cookie value
TOKEN_BYTES = 32


def generate_token() -> str:
    """Generate an unguessable session token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


class SessionStore(Protocol):
    """Interface for session storage backends."""

    @property
    def ttl_seconds(self) -> Optional[int]:
        """Session lifetime in seconds, None when sessions never expire."""
        ...

    def create(self, identity: IdentityReference) -> str:
        """Start a session for identity and return its token."""
        ...

    def resolve(self, token: str) -> Optional[IdentityReference]:
        """Return the identity bound to a live token, else None."""
        ...

    def destroy(self, token: str) -> None:
        """End a session. Unknown tokens are ignored."""
        ...

    def get(self, token: str) -> Optional[Session]:
        """Return the full live session record, else None."""
        ...

    def destroy_all(self, identity: IdentityReference) -> int:
        """End every session of a user. Returns the number removed."""
        ...

    def purge_expired(self) -> int:
        """Drop expired sessions. Returns the number removed."""
        ...


class InMemorySessionStore:
    """
    Dict-backed SessionStore.

    Thread-safe: create and destroy happen under the same lock as
    resolve, so no reader ever sees a half-written session.

    Args:
        ttl_seconds: Session lifetime; None or 0 disables expiry
    """

    def __init__(self, ttl_seconds: Optional[int] = None):
        self._ttl = ttl_seconds or None
        self._lock = threading.RLock()
        self._sessions: dict[str, Session] = {}

    @property
    def ttl_seconds(self) -> Optional[int]:
        """Session lifetime in seconds, None when sessions never expire."""
        return self._ttl

    def create(self, identity: IdentityReference) -> str:
        with self._lock:
            token = generate_token()
            while token in self._sessions:
                token = generate_token()
            self._sessions[token] = Session.new(token, identity, ttl_seconds=self._ttl)

        _logger.debug(f"Created session for user: {identity.user_id}")
        return token

    def get(self, token: str) -> Optional[Session]:
        if not token:
            return None

        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None

            if not session.is_valid:
                # Clean up expired session
                del self._sessions[token]
                _logger.debug(f"Session expired for user: {session.identity.user_id}")
                return None

            return session

    def resolve(self, token: str) -> Optional[IdentityReference]:
        session = self.get(token)
        return session.identity if session else None

    def destroy(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    def destroy_all(self, identity: IdentityReference) -> int:
        with self._lock:
            tokens = [t for t, s in self._sessions.items() if s.identity == identity]
            for token in tokens:
                del self._sessions[token]
        return len(tokens)

    def purge_expired(self) -> int:
        with self._lock:
            expired = [t for t, s in self._sessions.items() if not s.is_valid]
            for token in expired:
                del self._sessions[token]

        if expired:
            _logger.info(f"Cleaned up {len(expired)} expired sessions")
        return len(expired)

    def count(self) -> int:
        """Count stored sessions, including expired ones not yet purged."""
        with self._lock:
            return len(self._sessions)
