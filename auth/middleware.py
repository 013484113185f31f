# auth/middleware.py
"""
FastAPI authentication middleware.

Provides:
- Session cookie handling
- Gate decision + user context injection into requests
- Helper dependencies for route handlers
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from auth.errors import StoreUnavailableError
from auth.gate import AuthenticationGate
from auth.models import Deny, DenyReason, GateDecision, Permit, UserRecord

_logger = logging.getLogger(__name__)

DEFAULT_SESSION_COOKIE_NAME = "sid"
LOGIN_PATH = "/login"
SERVICE_UNAVAILABLE_DETAIL = "Service temporarily unavailable"


def service_unavailable_response() -> JSONResponse:
    """Generic 503 for storage outages. Never includes internal detail."""
    return JSONResponse(status_code=503, content={"detail": SERVICE_UNAVAILABLE_DETAIL})


@dataclass(frozen=True)
class SessionCookie:
    """
    Cookie transport for the session token.

    Attributes:
        name: Cookie name
        max_age: Lifetime in seconds, None for a browser-session cookie
        secure: Only send over HTTPS
    """
    name: str = DEFAULT_SESSION_COOKIE_NAME
    max_age: Optional[int] = None
    secure: bool = False

    def read(self, request: Request) -> Optional[str]:
        """Extract session token from request cookies."""
        return request.cookies.get(self.name) or None

    def set(self, response: Response, token: str) -> None:
        """
        Set session cookie on response.

        Uses HTTP-only, SameSite=Lax settings.
        """
        response.set_cookie(
            key=self.name,
            value=token,
            max_age=self.max_age,
            httponly=True,  # Prevent JS access
            samesite="lax",  # CSRF protection
            secure=self.secure,
        )

    def clear(self, response: Response) -> None:
        """Clear session cookie from response."""
        response.delete_cookie(
            key=self.name,
            httponly=True,
            samesite="lax",
            secure=self.secure,
        )


class LoginRequired(Exception):
    """Raised by require_login; the app turns it into a redirect to /login."""

    def __init__(self, decision: Deny):
        super().__init__(decision.reason.value)
        self.decision = decision


def get_gate_decision(request: Request) -> GateDecision:
    """Decision attached by AuthMiddleware. Anonymous when the middleware didn't run."""
    return getattr(request.state, "auth", None) or Deny(DenyReason.NO_TOKEN)


async def get_optional_user(request: Request) -> Optional[UserRecord]:
    """
    FastAPI dependency: Get current user if logged in.

    Returns None for anonymous users (no error).
    """
    decision = get_gate_decision(request)
    return decision.user if isinstance(decision, Permit) else None


async def get_required_user(request: Request) -> UserRecord:
    """
    FastAPI dependency for JSON endpoints: Get current user (required).

    Raises 401 if not logged in.
    """
    user = await get_optional_user(request)
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
        )
    return user


async def require_login(request: Request) -> UserRecord:
    """
    FastAPI dependency for page routes: Get current user (required).

    Raises LoginRequired, which redirects to the login page.
    """
    decision = get_gate_decision(request)
    if isinstance(decision, Deny):
        raise LoginRequired(decision)
    return decision.user


class AuthMiddleware:
    """
    Middleware that runs the authentication gate on every HTTP request.

    Stores the decision in request.state.auth and, on Permit, the user in
    request.state.user, so any handler can read them without Depends().
    Both live in the request scope only.
    """

    def __init__(self, app, gate: AuthenticationGate, cookie: SessionCookie):
        self.app = app
        self.gate = gate
        self.cookie = cookie

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http":
            # Create request to access cookies
            request = Request(scope, receive)
            token = self.cookie.read(request)
            try:
                # Store lookups may block
                decision = await run_in_threadpool(self.gate.check, token)
            except StoreUnavailableError:
                # Runs outside FastAPI's exception handlers
                _logger.exception("Session check failed: store unavailable")
                response = service_unavailable_response()
                await response(scope, receive, send)
                return

            scope.setdefault("state", {})
            scope["state"]["auth"] = decision
            scope["state"]["user"] = decision.user if isinstance(decision, Permit) else None

        await self.app(scope, receive, send)
