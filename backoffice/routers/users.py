from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status

from .responses import respond
from ..core.auth import get_current_user, require_roles
from ..dependencies import get_user_service
from ..models.enums import Role
from ..models.user import User
from ..services.user_service import UserService

router = APIRouter(prefix="/api/users", tags=["Users"])

admin_only = require_roles(Role.ADMIN)


@router.get("")
def list_users(
    request: Request,
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(admin_only),
):
    """One page of users. Accepts the common list parameters plus `role`."""
    return service.list(request.query_params).to_dict()


@router.get("/brokers")
def list_brokers(
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_user),
):
    return service.list_brokers()


# --- The caller's own account ---

@router.patch("/me/profile")
def update_my_profile(
    payload: Dict[str, Any] = Body(...),
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_user),
):
    return respond(service.update_profile(current_user.user_id, payload))


@router.get("/me/notifications")
def get_my_notifications(
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_user),
):
    return service.get_notification_preferences(current_user.user_id)


@router.put("/me/notifications")
def update_my_notifications(
    payload: Dict[str, Any] = Body(...),
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_user),
):
    return respond(service.update_notification_preferences(current_user.user_id, payload))


# --- Administration ---

@router.get("/{user_id}")
def get_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(admin_only),
):
    record = service.get(user_id)
    if record is None:
        raise HTTPException(status_code=404, detail="User not found")
    return record


@router.post("")
def create_user(
    payload: Dict[str, Any] = Body(...),
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(admin_only),
):
    """Register an account that already exists at the identity provider."""
    return respond(service.create(payload), status.HTTP_201_CREATED)


@router.patch("/{user_id}/role")
def update_user_role(
    user_id: str,
    payload: Dict[str, Any] = Body(...),
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(admin_only),
):
    return respond(service.update_role(user_id, payload.get("role")))


@router.patch("/{user_id}/disabled")
def set_user_disabled(
    user_id: str,
    payload: Dict[str, Any] = Body(...),
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(admin_only),
):
    return respond(service.set_disabled(user_id, payload.get("disabled")))
