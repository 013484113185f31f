# persistence/tests/test_persistence.py
"""Tests for persistence layer."""

import pytest
from datetime import datetime, timedelta

from sqlalchemy import select

from auth.errors import StoreUnavailableError, UserExistsError
from auth.gate import AuthenticationGate
from auth.models import Deny, DenyReason, IdentityReference, Permit, UserRecord
from auth.password import PasswordHasher
from auth.service import AuthService
from persistence.db import Database, create_db_engine
from persistence.models import SessionRow, UserRow
from persistence.sessions import SqlSessionStore
from persistence.users import SqlUserStore


@pytest.fixture
def db():
    """Fresh in-memory database for each test."""
    database = Database("sqlite:///:memory:")
    database.init()
    yield database
    database.reset()
    database.close()


@pytest.fixture
def users(db):
    return SqlUserStore(db)


@pytest.fixture
def sessions(db):
    return SqlSessionStore(db, ttl_seconds=3600)


@pytest.fixture
def user(users):
    return users.add(UserRecord.new(email="test@example.com", password_hash="$2b$04$hash"))


def _expire(db, token):
    """Push a stored session's expiry into the past."""
    with db.session() as s:
        row = s.get(SessionRow, token)
        row.expires_at = datetime.utcnow() - timedelta(seconds=1)


# =============================================================================
# Database Tests
# =============================================================================


class TestDatabase:
    """Tests for engine and schema management."""

    def test_init_is_idempotent(self, db):
        db.init()
        db.init()

    def test_file_database_creates_directory(self, tmp_path):
        path = tmp_path / "nested" / "auth.db"
        engine = create_db_engine(f"sqlite:///{path}")
        try:
            assert path.parent.exists()
        finally:
            engine.dispose()

    def test_session_rolls_back_on_error(self, db, users, user):
        with pytest.raises(RuntimeError):
            with db.session() as s:
                s.add(SessionRow(
                    token="tok",
                    user_id=user.id,
                    identity="{}",
                    created_at=datetime.utcnow(),
                ))
                raise RuntimeError("boom")

        with db.session() as s:
            assert s.scalars(select(SessionRow)).first() is None


# =============================================================================
# User Store Tests
# =============================================================================


class TestSqlUserStore:
    """Tests for SQL user storage."""

    def test_add_and_find_by_email(self, users, user):
        found = users.find_by_email("test@example.com")
        assert found is not None
        assert found.id == user.id
        assert found.password_hash == "$2b$04$hash"

    def test_find_by_email_normalizes(self, users, user):
        assert users.find_by_email("  TEST@Example.com").id == user.id

    def test_find_by_email_not_found(self, users):
        assert users.find_by_email("nonexistent@example.com") is None

    def test_find_by_id(self, users, user):
        assert users.find_by_id(user.id).email == "test@example.com"
        assert users.find_by_id("nonexistent-id") is None

    def test_add_duplicate_raises(self, users, user):
        with pytest.raises(UserExistsError):
            users.add(UserRecord.new(email="TEST@example.com", password_hash="other"))

    def test_remove(self, users, user):
        assert users.remove(user.id) is True
        assert users.find_by_id(user.id) is None
        assert users.remove(user.id) is False

    def test_missing_table_is_store_unavailable(self, db, users):
        """Database errors surface as StoreUnavailableError."""
        db.reset()
        with pytest.raises(StoreUnavailableError):
            users.find_by_email("test@example.com")


# =============================================================================
# Session Store Tests
# =============================================================================


class TestSqlSessionStore:
    """Tests for SQL session storage."""

    def test_resolve_created(self, sessions):
        ref = IdentityReference("user-123")
        token = sessions.create(ref)
        assert sessions.resolve(token) == ref

    def test_create_sets_expiry(self, sessions):
        token = sessions.create(IdentityReference("user-123"))
        session = sessions.get(token)
        assert session.expires_at - session.created_at == timedelta(seconds=3600)

    def test_ttl_seconds(self, db, sessions):
        assert sessions.ttl_seconds == 3600
        assert SqlSessionStore(db, ttl_seconds=0).ttl_seconds is None

    def test_no_ttl_never_expires(self, db):
        store = SqlSessionStore(db)
        token = store.create(IdentityReference("user-123"))
        assert store.get(token).expires_at is None

    def test_resolve_unknown(self, sessions):
        assert sessions.resolve("nonexistent-token") is None
        assert sessions.resolve("") is None

    def test_destroy(self, sessions):
        token = sessions.create(IdentityReference("user-123"))
        sessions.destroy(token)
        assert sessions.resolve(token) is None

    def test_destroy_is_idempotent(self, sessions):
        sessions.destroy("nonexistent-token")
        token = sessions.create(IdentityReference("user-123"))
        sessions.destroy(token)
        sessions.destroy(token)

    def test_expired_session_removed(self, db, sessions):
        token = sessions.create(IdentityReference("user-123"))
        _expire(db, token)

        assert sessions.resolve(token) is None
        with db.session() as s:
            assert s.get(SessionRow, token) is None

    def test_unreadable_identity_discarded(self, db, sessions):
        token = sessions.create(IdentityReference("user-123"))
        with db.session() as s:
            s.get(SessionRow, token).identity = "garbage"

        assert sessions.resolve(token) is None

    def test_destroy_all(self, sessions):
        ref = IdentityReference("user-123")
        sessions.create(ref)
        sessions.create(ref)
        other = sessions.create(IdentityReference("user-456"))

        assert sessions.destroy_all(ref) == 2
        assert sessions.resolve(other) is not None

    def test_purge_expired(self, db, sessions):
        stale = sessions.create(IdentityReference("user-123"))
        fresh = sessions.create(IdentityReference("user-456"))
        _expire(db, stale)

        assert sessions.purge_expired() == 1
        assert sessions.resolve(fresh) == IdentityReference("user-456")

    def test_missing_table_is_store_unavailable(self, db, sessions):
        db.reset()
        with pytest.raises(StoreUnavailableError):
            sessions.create(IdentityReference("user-123"))


# =============================================================================
# Integration Tests
# =============================================================================


class TestSqlAuthFlow:
    """Login and gate checks against SQL-backed stores."""

    def test_login_and_gate(self, users, sessions):
        service = AuthService(users, sessions, hasher=PasswordHasher(rounds=4))
        service.register("a@b.com", "secret12")

        outcome = service.login("a@b.com", "secret12")
        decision = AuthenticationGate(sessions, users).check(outcome.token)

        assert isinstance(decision, Permit)
        assert decision.user.email == "a@b.com"

    def test_deleted_user_session_destroyed(self, users, sessions):
        service = AuthService(users, sessions, hasher=PasswordHasher(rounds=4))
        user = service.register("a@b.com", "secret12")
        token = service.login("a@b.com", "secret12").token

        users.remove(user.id)

        assert AuthenticationGate(sessions, users).check(token) == Deny(DenyReason.USER_DELETED)
        assert sessions.resolve(token) is None

    def test_gate_reads_current_user_row(self, db, users, sessions):
        """Each check hydrates from the users table, not from the login."""
        service = AuthService(users, sessions, hasher=PasswordHasher(rounds=4))
        user = service.register("a@b.com", "secret12")
        token = service.login("a@b.com", "secret12").token

        with db.session() as s:
            s.get(UserRow, user.id).email = "renamed@b.com"

        decision = AuthenticationGate(sessions, users).check(token)

        assert isinstance(decision, Permit)
        assert decision.user.email == "renamed@b.com"
        assert decision.user is not user
