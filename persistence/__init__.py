# persistence/__init__.py
"""
Persistence layer.

Provides SQLAlchemy-backed storage for:
- User records (UserStore)
- Login sessions (SessionStore)
"""

from persistence.db import Database, create_db_engine
from persistence.sessions import SqlSessionStore
from persistence.users import SqlUserStore

__all__ = [
    "Database",
    "create_db_engine",
    "SqlSessionStore",
    "SqlUserStore",
]
