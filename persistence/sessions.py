# persistence/sessions.py
"""
SQL-backed SessionStore.

Each create/destroy is its own transaction touching a single row, so a
concurrent resolve sees either the whole session or nothing.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError

from auth.models import IdentityReference, Session
from auth.serialization import dump_identity, load_identity
from auth.sessions import generate_token
from persistence.db import Database, store_errors
from persistence.models import SessionRow

_logger = logging.getLogger(__name__)

# Attempts at drawing a token not already in the table
MAX_TOKEN_ATTEMPTS = 3


class SqlSessionStore:
    """
    SessionStore on top of the sessions table.

    Args:
        db: Shared database handle
        ttl_seconds: Session lifetime; None or 0 disables expiry
    """

    def __init__(self, db: Database, ttl_seconds: Optional[int] = None):
        self.db = db
        self._ttl = ttl_seconds or None

    @property
    def ttl_seconds(self) -> Optional[int]:
        return self._ttl

    def create(self, identity: IdentityReference) -> str:
        now = datetime.utcnow()
        expires_at = now + timedelta(seconds=self._ttl) if self._ttl else None

        with store_errors("session create"):
            for attempt in range(MAX_TOKEN_ATTEMPTS):
                token = generate_token()
                try:
                    with self.db.session() as s:
                        s.add(SessionRow(
                            token=token,
                            user_id=identity.user_id,
                            identity=dump_identity(identity),
                            created_at=now,
                            expires_at=expires_at,
                        ))
                except IntegrityError:
                    if attempt == MAX_TOKEN_ATTEMPTS - 1:
                        raise
                    continue

                _logger.debug(f"Created session for user: {identity.user_id}")
                return token

    def get(self, token: str) -> Optional[Session]:
        if not token:
            return None

        with store_errors("session lookup"), self.db.session() as s:
            row = s.get(SessionRow, token)
            if row is None:
                return None

            identity = load_identity(row.identity)
            if identity is None:
                _logger.warning("Discarding session with unreadable identity")
                s.delete(row)
                return None

            session = Session(
                token=row.token,
                identity=identity,
                created_at=row.created_at,
                expires_at=row.expires_at,
            )

            if not session.is_valid:
                # Clean up expired session
                s.delete(row)
                return None

            return session

    def resolve(self, token: str) -> Optional[IdentityReference]:
        session = self.get(token)
        return session.identity if session else None

    def destroy(self, token: str) -> None:
        with store_errors("session delete"), self.db.session() as s:
            s.execute(delete(SessionRow).where(SessionRow.token == token))

    def destroy_all(self, identity: IdentityReference) -> int:
        with store_errors("session delete"), self.db.session() as s:
            result = s.execute(delete(SessionRow).where(SessionRow.user_id == identity.user_id))
            return result.rowcount

    def purge_expired(self) -> int:
        """
        Remove expired sessions from database.

        Should be called periodically (e.g., daily cron).

        Returns:
            Number of sessions cleaned up
        """
        with store_errors("session purge"), self.db.session() as s:
            result = s.execute(
                delete(SessionRow).where(
                    SessionRow.expires_at.is_not(None),
                    SessionRow.expires_at < datetime.utcnow(),
                )
            )
            count = result.rowcount

        if count > 0:
            _logger.info(f"Cleaned up {count} expired sessions")

        return count
