"""
Authentication endpoints: login, logout, registration, current user.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, EmailStr
from starlette.concurrency import run_in_threadpool

from auth.errors import UserExistsError, WeakPasswordError
from auth.middleware import LOGIN_PATH, SessionCookie, get_required_user
from auth.models import UserRecord
from auth.service import AuthService


router = APIRouter(tags=["auth"])


# =============================================================================
# Dependencies
# =============================================================================


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_session_cookie(request: Request) -> SessionCookie:
    return request.app.state.session_cookie


# =============================================================================
# Request/Response Schemas
# =============================================================================


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str


class LoginRequest(BaseModel):
    # Plain str: a malformed email is just an unknown email
    email: str
    password: str


class AuthResponse(BaseModel):
    success: bool
    user: Optional[dict] = None
    error: Optional[str] = None


# =============================================================================
# Routes
# =============================================================================


@router.get(LOGIN_PATH)
async def login_page():
    """Unauthenticated entry point; protected routes redirect here."""
    return {
        "detail": "Login required",
        "login": {"method": "POST", "path": LOGIN_PATH, "fields": ["email", "password"]},
    }


@router.post(LOGIN_PATH, response_model=AuthResponse)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    cookie: SessionCookie = Depends(get_session_cookie),
):
    """Login with email/password. Sets the session cookie on success."""
    # bcrypt is deliberately slow; keep it off the event loop
    outcome = await run_in_threadpool(service.login, body.email, body.password)

    if not outcome.ok:
        response.status_code = 401
        return AuthResponse(success=False, error=service.failure_message(outcome.result))

    # Drop any session the client was already holding
    previous = cookie.read(request)
    if previous:
        await run_in_threadpool(service.logout, previous)

    cookie.set(response, outcome.token)
    return AuthResponse(success=True, user=outcome.user.to_dict())


@router.post("/logout")
async def logout(
    request: Request,
    service: AuthService = Depends(get_auth_service),
    cookie: SessionCookie = Depends(get_session_cookie),
):
    """Destroy the session and send the client back to the login page."""
    await run_in_threadpool(service.logout, cookie.read(request))

    response = RedirectResponse(LOGIN_PATH, status_code=303)
    cookie.clear(response)
    return response


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Register a new user account. Does not log the user in."""
    try:
        user = await run_in_threadpool(service.register, body.email, body.password)
    except WeakPasswordError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UserExistsError:
        raise HTTPException(status_code=409, detail="Email already registered")

    return AuthResponse(success=True, user=user.to_dict())


@router.get("/api/me")
async def get_me(user: UserRecord = Depends(get_required_user)):
    """Get current user info."""
    return user.to_dict()
