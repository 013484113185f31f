# persistence/users.py
"""
SQL-backed UserStore.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from auth.errors import UserExistsError
from auth.models import UserRecord, normalize_email
from persistence.db import Database, store_errors
from persistence.models import UserRow

_logger = logging.getLogger(__name__)


def _row_to_user(row: UserRow) -> UserRecord:
    """Convert a database row to a UserRecord."""
    return UserRecord(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        created_at=row.created_at,
    )


class SqlUserStore:
    """
    UserStore on top of the users table.

    Every database failure surfaces as StoreUnavailableError.
    """

    def __init__(self, db: Database):
        self.db = db

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        """
        Get user by email address.

        Args:
            email: Email to look up (normalized before querying)

        Returns:
            UserRecord if found, None otherwise
        """
        with store_errors("user lookup"), self.db.session() as s:
            row = s.scalars(
                select(UserRow).where(UserRow.email == normalize_email(email))
            ).first()
            return _row_to_user(row) if row else None

    def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        """
        Get user by ID.

        Args:
            user_id: User ID to look up

        Returns:
            UserRecord if found, None otherwise
        """
        with store_errors("user lookup"), self.db.session() as s:
            row = s.get(UserRow, user_id)
            return _row_to_user(row) if row else None

    def add(self, user: UserRecord) -> UserRecord:
        """
        Persist a new user.

        Raises:
            UserExistsError: If email already registered
        """
        email = normalize_email(user.email)
        with store_errors("user insert"):
            try:
                with self.db.session() as s:
                    s.add(UserRow(
                        id=user.id,
                        email=email,
                        password_hash=user.password_hash,
                        created_at=user.created_at,
                    ))
            except IntegrityError as e:
                raise UserExistsError(f"User with email {email} already exists") from e

        _logger.debug(f"Stored user: {user.id}")
        return user

    def remove(self, user_id: str) -> bool:
        with store_errors("user delete"), self.db.session() as s:
            result = s.execute(delete(UserRow).where(UserRow.id == user_id))
            return result.rowcount > 0
