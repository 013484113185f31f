# auth/gate.py
"""
Access gate for protected routes.

Run once per request before any protected handler. A Deny is an
ordinary return value; the HTTP layer turns it into a redirect to the
login page.
"""

from __future__ import annotations

import logging
from typing import Optional

from auth.models import Deny, DenyReason, GateDecision, Permit
from auth.serialization import deserialize_user
from auth.sessions import SessionStore
from auth.store import UserStore

_logger = logging.getLogger(__name__)


class AuthenticationGate:
    """Resolves a session token to a user, or says why it can't."""

    def __init__(self, sessions: SessionStore, users: UserStore):
        self.sessions = sessions
        self.users = users

    def check(self, token: Optional[str]) -> GateDecision:
        """
        Decide whether the bearer of token may proceed.

        Args:
            token: Session token from the request cookie, if any

        Returns:
            Permit(user) with the freshly loaded user record, or Deny(reason)
        """
        if not token:
            return Deny(DenyReason.NO_TOKEN)

        identity = self.sessions.resolve(token)
        if identity is None:
            return Deny(DenyReason.INVALID_SESSION)

        user = deserialize_user(self.users, identity)
        if user is None:
            # User was deleted after logging in
            self.sessions.destroy(token)
            _logger.warning(f"Destroyed session of deleted user: {identity.user_id}")
            return Deny(DenyReason.USER_DELETED)

        return Permit(user=user)
