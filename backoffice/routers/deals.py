from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from .responses import respond
from ..core.auth import forbid_roles, get_current_user
from ..dependencies import get_deal_service
from ..models.enums import Role
from ..models.user import User
from ..services.deal_service import DealService

router = APIRouter(prefix="/api/deals", tags=["Deals"])

can_edit = forbid_roles(Role.GUEST)


@router.get("")
def list_open_deals(
    search: Optional[str] = None,
    service: DealService = Depends(get_deal_service),
    current_user: User = Depends(get_current_user),
):
    return service.list_open(search)


@router.get("/closed")
def list_closed_deals(
    search: Optional[str] = None,
    limit: int = Query(10, ge=1, le=100),
    service: DealService = Depends(get_deal_service),
    current_user: User = Depends(get_current_user),
):
    return service.list_closed(search, limit)


@router.get("/{deal_id}")
def get_deal(
    deal_id: str,
    service: DealService = Depends(get_deal_service),
    current_user: User = Depends(get_current_user),
):
    """The deal together with the requirement it serves."""
    found = service.get_with_requirement(deal_id)
    if found is None:
        raise HTTPException(status_code=404, detail="Deal not found")
    return found


@router.get("/{deal_id}/inventory")
def list_assigned_inventory(
    deal_id: str,
    service: DealService = Depends(get_deal_service),
    current_user: User = Depends(get_current_user),
):
    return service.list_assigned_inventory(deal_id)


@router.post("")
def create_deal(
    payload: Dict[str, Any] = Body(...),
    service: DealService = Depends(get_deal_service),
    current_user: User = Depends(can_edit),
):
    return respond(service.create(payload.get("requirement_id")), status.HTTP_201_CREATED)


@router.patch("/{deal_id}")
def update_deal(
    deal_id: str,
    payload: Dict[str, Any] = Body(...),
    service: DealService = Depends(get_deal_service),
    current_user: User = Depends(can_edit),
):
    return respond(service.update(deal_id, payload))


@router.post("/{deal_id}/inventory")
def assign_potential_inventory(
    deal_id: str,
    payload: Dict[str, Any] = Body(...),
    service: DealService = Depends(get_deal_service),
    current_user: User = Depends(can_edit),
):
    return respond(service.assign_potential_inventory(deal_id, payload), status.HTTP_201_CREATED)


@router.delete("/{deal_id}/inventory/{inventory_id}")
def remove_potential_inventory(
    deal_id: str,
    inventory_id: str,
    service: DealService = Depends(get_deal_service),
    current_user: User = Depends(can_edit),
):
    return respond(service.remove_potential_inventory(deal_id, inventory_id))


@router.post("/{deal_id}/final-inventory")
def assign_final_inventory(
    deal_id: str,
    payload: Dict[str, Any] = Body(...),
    service: DealService = Depends(get_deal_service),
    current_user: User = Depends(can_edit),
):
    """Settle the deal on one unit; the unit becomes reserved."""
    return respond(service.assign_final_inventory(deal_id, payload))
