# auth/store.py
"""
User record lookup.

UserStore is the capability the authentication core consumes. The
in-memory implementation backs tests and single-process demos; the
SQL-backed one lives in persistence.users.
"""

from __future__ import annotations

import threading
from typing import Optional, Protocol

from auth.errors import UserExistsError
from auth.models import UserRecord, normalize_email


class UserStore(Protocol):
    """Interface for user record storage."""

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        """Find a user by (normalized) email. Return None if not found."""
        ...

    def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        """Find a user by ID. Return None if not found."""
        ...

    def add(self, user: UserRecord) -> UserRecord:
        """Persist a new user. Raise UserExistsError on duplicate email."""
        ...

    def remove(self, user_id: str) -> bool:
        """Delete a user. Return True if a record was removed."""
        ...


class InMemoryUserStore:
    """
    Dict-backed UserStore.

    Thread-safe for concurrent access.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._by_id: dict[str, UserRecord] = {}
        self._by_email: dict[str, str] = {}

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        with self._lock:
            user_id = self._by_email.get(normalize_email(email))
            return self._by_id.get(user_id) if user_id else None

    def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        with self._lock:
            return self._by_id.get(user_id)

    def add(self, user: UserRecord) -> UserRecord:
        email = normalize_email(user.email)
        with self._lock:
            if email in self._by_email:
                raise UserExistsError(f"User with email {email} already exists")
            self._by_id[user.id] = user
            self._by_email[email] = user.id
        return user

    def remove(self, user_id: str) -> bool:
        with self._lock:
            user = self._by_id.pop(user_id, None)
            if user is None:
                return False
            self._by_email.pop(normalize_email(user.email), None)
            return True

    def count(self) -> int:
        with self._lock:
            return len(self._by_id)

    def clear(self) -> None:
        with self._lock:
            self._by_id.clear()
            self._by_email.clear()
