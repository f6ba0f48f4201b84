"""
Authentication Router

Tokens are issued by the identity provider; these endpoints only report on
and record the caller behind a valid token.
"""

from fastapi import APIRouter, Depends

from .responses import respond
from ..core.auth import get_current_user
from ..dependencies import get_user_service
from ..models.user import User
from ..services.user_service import UserService


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.get("/me")
def get_me(current_user: User = Depends(get_current_user)):
    """
    Get current authenticated user information

    Requires: Bearer token in Authorization header
    """
    return current_user.to_dict()


@router.post("/me/login")
def record_login(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Stamp last_login; the client calls this right after signing in."""
    return respond(service.record_login(current_user.user_id))
