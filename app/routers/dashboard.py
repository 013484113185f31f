"""
Protected dashboard page.
"""

from fastapi import APIRouter, Depends

from auth.middleware import require_login
from auth.models import UserRecord

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard")
async def get_dashboard(user: UserRecord = Depends(require_login)):
    """
    Dashboard for the logged-in user.

    Anonymous or stale sessions are redirected to /login.
    """
    return {
        "message": f"Welcome, {user.email}",
        "user": user.to_dict(),
    }
