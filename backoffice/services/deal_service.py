"""
Deals tie a requirement to the units proposed for it and, eventually, to the
unit it closed on. Stages are a flat set: any stage may follow any other.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import String, cast, or_
from sqlalchemy.orm import Session

from .common import Payload, commit, fetch, validate_payload
from ..core.errors import BackofficeError, MutationResult, NotFound
from ..core.view_cache import ListViewCache
from ..models.deal import DealCreate, DealUpdate, InventoryAssignment
from ..models.enums import DealStage, InventoryStatus
from ..models.sql_deal import SQLDeal, SQLInventoryAssignedDeal
from ..models.sql_property import SQLInventory, SQLRequirement

logger = logging.getLogger(__name__)

# list views that show deal-driven fields (inventory status, has_deal)
AFFECTED_KINDS = ("inventory", "requirement")


def _deal_with_requirement(deal: SQLDeal, requirement: SQLRequirement) -> Dict[str, Any]:
    return {"deal": deal.to_dict(), "requirement": requirement.to_dict()}


class DealService:
    def __init__(self, db: Session, cache: Optional[ListViewCache] = None):
        self.db = db
        self.cache = cache

    # --- Reads ---

    def get(self, deal_id: str) -> Optional[Dict[str, Any]]:
        deal = self._find(deal_id)
        return deal.to_dict() if deal else None

    def get_with_requirement(self, deal_id: str) -> Optional[Dict[str, Any]]:
        found = fetch(self.db, "fetch deal", lambda: (
            self.db.query(SQLDeal, SQLRequirement)
            .join(SQLRequirement, SQLDeal.requirement_id == SQLRequirement.requirement_id)
            .filter(SQLDeal.deal_id == deal_id)
            .first()
        ))
        return _deal_with_requirement(*found) if found else None

    def list_open(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        """Every deal not yet closed, grouped by stage, freshest first."""
        query = self._joined().filter(SQLDeal.status != DealStage.CLOSED.value)
        query = self._search(query, search)
        rows = fetch(self.db, "fetch open deals",
                     lambda: query.order_by(SQLDeal.status.asc(), SQLDeal.updated_at.desc()).all())
        return [_deal_with_requirement(d, r) for d, r in rows]

    def list_closed(self, search: Optional[str] = None, limit: int = 10) -> List[Dict[str, Any]]:
        query = self._joined().filter(SQLDeal.status == DealStage.CLOSED.value)
        query = self._search(query, search)
        rows = fetch(self.db, "fetch closed deals",
                     lambda: query.order_by(SQLDeal.updated_at.desc()).limit(limit).all())
        return [_deal_with_requirement(d, r) for d, r in rows]

    def list_for_requirement(self, requirement_id: str) -> List[Dict[str, Any]]:
        rows = fetch(self.db, "fetch deals", lambda: (
            self.db.query(SQLDeal).filter(SQLDeal.requirement_id == requirement_id).all()
        ))
        return [row.to_dict() for row in rows]

    def list_assigned_inventory(self, deal_id: str) -> List[Dict[str, Any]]:
        rows = fetch(self.db, "fetch assigned inventory", lambda: (
            self.db.query(SQLInventory)
            .join(SQLInventoryAssignedDeal, SQLInventoryAssignedDeal.inventory_id == SQLInventory.inventory_id)
            .filter(SQLInventoryAssignedDeal.deal_id == deal_id)
            .all()
        ))
        return [row.to_dict() for row in rows]

    # --- Writes ---

    def create(self, requirement_id: str) -> MutationResult:
        try:
            data = validate_payload(DealCreate, {"requirement_id": requirement_id})
            self._require(SQLRequirement, data.requirement_id, "Requirement")
            deal = SQLDeal(requirement_id=data.requirement_id, status=DealStage.OPEN.value)
            self.db.add(deal)
            commit(self.db, "create deal", refresh=deal)
        except BackofficeError as e:
            return MutationResult.failure(e)

        logger.info(f"Deal {deal.deal_id} opened for requirement {requirement_id}")
        self._invalidate()
        return MutationResult.ok("Deal created", deal.to_dict())

    def assign_potential_inventory(self, deal_id: str, payload: Payload) -> MutationResult:
        """Add a unit to the deal's shortlist."""
        try:
            data = validate_payload(InventoryAssignment, payload)
            self._load(deal_id)
            self._require(SQLInventory, data.inventory_id, "Inventory")
            assignment = SQLInventoryAssignedDeal(deal_id=deal_id, inventory_id=data.inventory_id, remarks=data.remarks)
            self.db.add(assignment)
            commit(self.db, "assign inventory to deal", refresh=assignment)
        except BackofficeError as e:
            return MutationResult.failure(e)

        return MutationResult.ok("Inventory assigned", assignment.to_dict())

    def remove_potential_inventory(self, deal_id: str, inventory_id: str) -> MutationResult:
        try:
            removed = fetch(self.db, "remove inventory from deal", lambda: (
                self.db.query(SQLInventoryAssignedDeal)
                .filter(SQLInventoryAssignedDeal.deal_id == deal_id,
                        SQLInventoryAssignedDeal.inventory_id == inventory_id)
                .delete(synchronize_session=False)
            ))
            if not removed:
                raise NotFound(f"Inventory {inventory_id} is not assigned to deal {deal_id}")
            commit(self.db, "remove inventory from deal")
        except BackofficeError as e:
            return MutationResult.failure(e)

        return MutationResult.ok("Inventory removed from deal")

    def assign_final_inventory(self, deal_id: str, payload: Payload) -> MutationResult:
        """
        Settle the deal on one unit: the deal moves to negotiation and the
        unit is reserved, both in one transaction.
        """
        try:
            data = validate_payload(InventoryAssignment, payload)
            deal = self._load(deal_id)
            unit = self._require(SQLInventory, data.inventory_id, "Inventory")

            deal.inventory_id = unit.inventory_id
            deal.status = DealStage.NEGOTIATION.value
            deal.remarks = data.remarks
            unit.unit_status = InventoryStatus.RESERVED.value
            commit(self.db, "assign final inventory to deal", refresh=deal)
        except BackofficeError as e:
            return MutationResult.failure(e)

        logger.info(f"Deal {deal_id} settled on inventory {data.inventory_id}")
        self._invalidate()
        return MutationResult.ok("Final inventory assigned", deal.to_dict())

    def update(self, deal_id: str, payload: Payload) -> MutationResult:
        """
        Move the deal to any stage, saving the details sent with it. Closing a
        deal with a unit marks that unit sold.
        """
        try:
            data = validate_payload(DealUpdate, payload)
            deal = self._load(deal_id)

            deal.status = data.status.value
            for key in ("payment_plan", "milestones", "remarks"):
                if key in data.model_fields_set:
                    setattr(deal, key, getattr(data, key))
            if "outstanding_amount" in data.model_fields_set:
                deal.outstanding_amount = Decimal(data.outstanding_amount) if data.outstanding_amount else None
            if data.inventory_id:
                unit = self._require(SQLInventory, data.inventory_id, "Inventory")
                deal.inventory_id = unit.inventory_id
                if data.status is DealStage.CLOSED:
                    unit.unit_status = InventoryStatus.SOLD.value
            commit(self.db, "update deal", refresh=deal)
        except BackofficeError as e:
            self.db.rollback()
            return MutationResult.failure(e)

        self._invalidate()
        return MutationResult.ok(f"Deal moved to {deal.status}", deal.to_dict())

    # --- Helpers ---

    def _joined(self):
        return (
            self.db.query(SQLDeal, SQLRequirement)
            .join(SQLRequirement, SQLDeal.requirement_id == SQLRequirement.requirement_id)
        )

    @staticmethod
    def _search(query, search: Optional[str]):
        if not search or not search.strip():
            return query
        pattern = f"%{search.strip()}%"
        return query.filter(or_(
            cast(SQLDeal.deal_id, String).ilike(pattern),
            cast(SQLDeal.status, String).ilike(pattern),
            SQLRequirement.demand.ilike(pattern),
            SQLRequirement.preferred_type.ilike(pattern),
            SQLRequirement.preferred_location.ilike(pattern),
            SQLRequirement.budget.ilike(pattern),
        ))

    def _find(self, deal_id: str) -> Optional[SQLDeal]:
        return fetch(self.db, "fetch deal", lambda: self.db.get(SQLDeal, deal_id))

    def _load(self, deal_id: str) -> SQLDeal:
        deal = self._find(deal_id)
        if deal is None:
            raise NotFound(f"Deal {deal_id} not found")
        return deal

    def _require(self, model, record_id: str, label: str):
        row = fetch(self.db, f"fetch {label.lower()}", lambda: self.db.get(model, record_id))
        if row is None:
            raise NotFound(f"{label} {record_id} not found")
        return row

    def _invalidate(self) -> None:
        if self.cache is not None:
            self.cache.invalidate(*AFFECTED_KINDS)
