"""Session auth API - FastAPI application entrypoint."""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import AppConfig, SESSION_BACKEND_SQL, load_config, log_config_snapshot
from app.routers import auth
from app.routers import dashboard
from auth.errors import StoreUnavailableError
from auth.gate import AuthenticationGate
from auth.middleware import (
    LOGIN_PATH,
    AuthMiddleware,
    LoginRequired,
    SessionCookie,
    service_unavailable_response,
)
from auth.password import PasswordHasher
from auth.service import AuthService
from auth.sessions import InMemorySessionStore, SessionStore
from auth.store import UserStore
from persistence.db import Database
from persistence.sessions import SqlSessionStore
from persistence.users import SqlUserStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Authenticated responses must never be cached
        response.headers["Cache-Control"] = "no-store"
        return response


def create_app(
    config: Optional[AppConfig] = None,
    users: Optional[UserStore] = None,
    sessions: Optional[SessionStore] = None,
) -> FastAPI:
    """
    Build the application.

    Stores not passed in are built from config: users always live in
    the SQL database, sessions in memory or SQL per session_backend.
    """
    config = config or load_config()
    log_config_snapshot(config)

    database = None
    if users is None or (sessions is None and config.session_backend == SESSION_BACKEND_SQL):
        database = Database(config.database_url)

    if users is None:
        users = SqlUserStore(database)
    if sessions is None:
        if config.session_backend == SESSION_BACKEND_SQL:
            sessions = SqlSessionStore(database, ttl_seconds=config.session_ttl_seconds)
        else:
            sessions = InMemorySessionStore(ttl_seconds=config.session_ttl_seconds)

    service = AuthService(
        users=users,
        sessions=sessions,
        hasher=PasswordHasher(rounds=config.bcrypt_rounds),
        generic_login_errors=config.generic_login_errors,
    )
    # Cookie lifetime follows the store that actually expires the session
    cookie = SessionCookie(
        name=config.cookie_name,
        max_age=sessions.ttl_seconds,
        secure=config.cookie_secure,
    )
    started_at = datetime.now(timezone.utc)

    app = FastAPI(
        title="Session Auth",
        description="Email/password login with cookie sessions",
        version=config.service_version,
    )
    app.state.config = config
    app.state.auth_service = service
    app.state.session_cookie = cookie

    # Middleware stack (added in reverse execution order)
    # 1. SecurityHeaders: wraps everything, including auth redirects and 503s
    # 2. Auth: runs the gate and attaches the decision to the request
    app.add_middleware(AuthMiddleware, gate=AuthenticationGate(sessions, users), cookie=cookie)
    app.add_middleware(SecurityHeadersMiddleware)

    app.include_router(auth.router)
    app.include_router(dashboard.router)

    @app.exception_handler(LoginRequired)
    async def login_required_handler(request: Request, exc: LoginRequired):
        """Redirect to the login page; drop the cookie if it pointed at a dead session."""
        response = RedirectResponse(LOGIN_PATH, status_code=303)
        if exc.decision.stale_session:
            cookie.clear(response)
        return response

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
        logger.error(f"Store unavailable on {request.url.path}: {exc}", exc_info=exc)
        return service_unavailable_response()

    @app.get("/health")
    async def health():
        """Health check with service observability."""
        return {
            "status": "healthy",
            "service": config.service_name,
            "version": config.service_version,
            "environment": config.environment,
            "session_backend": config.session_backend,
            "started_at": started_at.isoformat(),
        }

    if database is not None:
        @app.on_event("startup")
        async def startup_event():
            """Initialize database tables."""
            database.init()

        @app.on_event("shutdown")
        async def shutdown_event():
            database.close()

    return app


app = create_app()
