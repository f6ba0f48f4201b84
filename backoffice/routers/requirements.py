from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status

from .responses import respond
from ..core.auth import forbid_roles, get_current_user
from ..dependencies import get_deal_service, get_inventory_service, get_requirement_service
from ..models.enums import Role
from ..models.property import RequirementFlagUpdate
from ..models.user import User
from ..services.deal_service import DealService
from ..services.inventory_service import InventoryService
from ..services.requirement_service import RequirementService

router = APIRouter(prefix="/api/requirements", tags=["Requirements"])

can_edit = forbid_roles(Role.GUEST)


@router.get("")
def list_requirements(
    request: Request,
    service: RequirementService = Depends(get_requirement_service),
    current_user: User = Depends(get_current_user),
):
    """One page of requirements; every row carries `has_deal`."""
    return service.list(request.query_params).to_dict()


@router.get("/stale")
def stale_requirements(
    days: int = Query(7, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: RequirementService = Depends(get_requirement_service),
    current_user: User = Depends(get_current_user),
):
    return service.stale_unassigned(days=days, limit=limit)


@router.get("/{requirement_id}")
def get_requirement(
    requirement_id: str,
    service: RequirementService = Depends(get_requirement_service),
    current_user: User = Depends(get_current_user),
):
    record = service.get(requirement_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Requirement not found")
    return record


@router.get("/{requirement_id}/recommended")
def recommended_inventory(
    requirement_id: str,
    request: Request,
    service: InventoryService = Depends(get_inventory_service),
    current_user: User = Depends(get_current_user),
):
    """Available inventory that can be proposed on this requirement, as a list page."""
    return service.recommended_for(requirement_id, request.query_params).to_dict()


@router.get("/{requirement_id}/deals")
def requirement_deals(
    requirement_id: str,
    service: DealService = Depends(get_deal_service),
    current_user: User = Depends(get_current_user),
):
    return service.list_for_requirement(requirement_id)


@router.post("")
def create_requirement(
    payload: Dict[str, Any] = Body(...),
    service: RequirementService = Depends(get_requirement_service),
    current_user: User = Depends(can_edit),
):
    return respond(service.create(payload, current_user.user_id), status.HTTP_201_CREATED)


@router.patch("/{requirement_id}")
def update_requirement(
    requirement_id: str,
    payload: Dict[str, Any] = Body(...),
    service: RequirementService = Depends(get_requirement_service),
    current_user: User = Depends(can_edit),
):
    return respond(service.update_fields(requirement_id, payload))


@router.patch("/{requirement_id}/status")
def set_requirement_status(
    requirement_id: str,
    payload: Dict[str, Any] = Body(...),
    service: RequirementService = Depends(get_requirement_service),
    current_user: User = Depends(can_edit),
):
    return respond(service.set_status(requirement_id, payload.get("status")))


@router.patch("/{requirement_id}/flags/{flag}")
def set_requirement_flag(
    requirement_id: str,
    flag: str,
    update: RequirementFlagUpdate,
    service: RequirementService = Depends(get_requirement_service),
    current_user: User = Depends(can_edit),
):
    """Toggle call / viewing / phpp / shared_with_indian_channel_partner."""
    return respond(service.set_flag(requirement_id, flag, update.value))
