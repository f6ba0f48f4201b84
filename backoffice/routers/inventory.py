from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status

from .responses import respond
from ..core.auth import forbid_roles, get_current_user
from ..dependencies import get_inventory_service
from ..models.enums import Role
from ..models.user import User
from ..services.inventory_service import InventoryService

router = APIRouter(prefix="/api/inventory", tags=["Inventory"])

# guests may browse but never edit
can_edit = forbid_roles(Role.GUEST)


@router.get("")
def list_inventory(
    request: Request,
    service: InventoryService = Depends(get_inventory_service),
    current_user: User = Depends(get_current_user),
):
    """
    One page of inventory

    Query parameters: filterColumn, filterValue, search, sortColumn,
    sortDirection, page, pageSize. Unknown columns and unparseable values
    are ignored.
    """
    return service.list(request.query_params).to_dict()


@router.get("/{inventory_id}")
def get_inventory(
    inventory_id: str,
    service: InventoryService = Depends(get_inventory_service),
    current_user: User = Depends(get_current_user),
):
    record = service.get(inventory_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Inventory not found")
    return record


@router.post("")
def create_inventory(
    payload: Dict[str, Any] = Body(...),
    service: InventoryService = Depends(get_inventory_service),
    current_user: User = Depends(can_edit),
):
    return respond(service.create(payload, current_user.user_id), status.HTTP_201_CREATED)


@router.patch("/{inventory_id}")
def update_inventory(
    inventory_id: str,
    payload: Dict[str, Any] = Body(...),
    service: InventoryService = Depends(get_inventory_service),
    current_user: User = Depends(can_edit),
):
    """Partial update; only the fields sent are touched."""
    return respond(service.update_fields(inventory_id, payload))


@router.patch("/{inventory_id}/status")
def set_inventory_status(
    inventory_id: str,
    payload: Dict[str, Any] = Body(...),
    service: InventoryService = Depends(get_inventory_service),
    current_user: User = Depends(can_edit),
):
    return respond(service.set_status(inventory_id, payload.get("status")))


@router.delete("/{inventory_id}")
def delete_inventory(
    inventory_id: str,
    service: InventoryService = Depends(get_inventory_service),
    current_user: User = Depends(can_edit),
):
    return respond(service.delete(inventory_id))
