# persistence/models.py
"""
Database tables for users and sessions.
"""

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class UserRow(Base):
    """User account table."""
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False)


class SessionRow(Base):
    """
    Login session table.

    identity holds the serialized IdentityReference; user_id duplicates
    it so all sessions of a user can be revoked in one statement.
    """
    __tablename__ = "sessions"

    token = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    identity = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=True, index=True)
