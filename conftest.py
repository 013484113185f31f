"""Configure pytest for the session auth project."""
import os
import sys
from pathlib import Path

# =============================================================================
# CI/Test Environment Configuration
# =============================================================================
# Set environment for tests BEFORE any imports so the module-level app in
# app.main never touches a database file and hashes at minimum cost.
os.environ.setdefault("ENV", "test")
os.environ.setdefault("AUTH_SESSION_BACKEND", "memory")
os.environ.setdefault("AUTH_DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("AUTH_BCRYPT_ROUNDS", "4")

# Add repo root to path so tests can import auth, persistence and app
root_path = Path(__file__).parent
if str(root_path) not in sys.path:
    sys.path.insert(0, str(root_path))


def pytest_configure(config):
    """Ensure environment is set before test collection."""
    os.environ.setdefault("ENV", "test")
    os.environ.setdefault("AUTH_BCRYPT_ROUNDS", "4")
