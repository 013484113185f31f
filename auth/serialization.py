# auth/serialization.py
"""
Session serialization glue.

serialize_user() picks what goes into a session at login time;
deserialize_user() turns it back into a full record on every request
with a fresh store lookup, so a session never serves a stale snapshot
of the user. dump/load_identity give the string form persistent
session backends write to storage.
"""

from __future__ import annotations

import json
from typing import Optional

from auth.models import IdentityReference, UserRecord
from auth.store import UserStore


def serialize_user(user: UserRecord) -> IdentityReference:
    """Reduce a user record to the reference stored in its session."""
    return IdentityReference(user_id=user.id)


def deserialize_user(store: UserStore, identity: IdentityReference) -> Optional[UserRecord]:
    """
    Hydrate a user record from a session's identity reference.

    Returns:
        The current UserRecord, or None if the user no longer exists
    """
    return store.find_by_id(identity.user_id)


def dump_identity(identity: IdentityReference) -> str:
    return json.dumps({"user_id": identity.user_id}, separators=(",", ":"))


def load_identity(payload: str) -> Optional[IdentityReference]:
    """Parse a stored identity payload. Returns None if it is unreadable."""
    try:
        data = json.loads(payload)
    except (TypeError, ValueError):
        return None

    if not isinstance(data, dict):
        return None

    user_id = data.get("user_id")
    if not isinstance(user_id, str) or not user_id:
        return None

    return IdentityReference(user_id=user_id)
