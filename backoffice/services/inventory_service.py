import logging
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.orm import Session

from .common import Payload, apply_fields, column_values, commit, fetch, validate_payload
from ..core.config import QueryConfig
from ..core.errors import BackofficeError, MutationResult, NotFound
from ..core.query_service import QueryResult, TabularQueryService
from ..core.view_cache import ListViewCache
from ..models.enums import InventoryStatus
from ..models.property import (
    INVENTORY_MONEY_FIELDS,
    InventoryCreate,
    InventoryStatusUpdate,
    InventoryUpdate,
)
from ..models.sql_property import SQLInventory, SQLRequirement

logger = logging.getLogger(__name__)

KIND = "inventory"
SERVER_FIELDS = ("inventory_id", "broker_id", "date_added", "updated_at")


class InventoryService:
    """Inventory list, lookup and field-level edits for one request session."""

    def __init__(self, db: Session, cache: Optional[ListViewCache] = None, config: Optional[QueryConfig] = None):
        self.db = db
        self.cache = cache
        self.queries = TabularQueryService(db, config, cache)

    # --- Reads ---

    def list(self, params: Optional[Mapping[str, Any]] = None) -> QueryResult:
        return self.queries.list(KIND, params)

    def get(self, inventory_id: str) -> Optional[Dict[str, Any]]:
        row = self._find(inventory_id)
        return row.to_dict() if row else None

    def recommended_for(self, requirement_id: str, params: Optional[Mapping[str, Any]] = None) -> QueryResult:
        """
        Units that can still be offered on a requirement's deal: every
        available unit, narrowed only by whatever the broker filters on.

        Raises:
            NotFound: no such requirement
        """
        requirement = fetch(self.db, "fetch requirement", lambda: self.db.get(SQLRequirement, requirement_id))
        if requirement is None:
            raise NotFound(f"Requirement {requirement_id} not found")

        return self.queries.list(
            KIND,
            params,
            extra_criteria=[SQLInventory.unit_status == InventoryStatus.AVAILABLE.value],
            cache_key="available",
        )

    # --- Writes ---

    def create(self, payload: Payload, broker_id: str) -> MutationResult:
        try:
            data = column_values(validate_payload(InventoryCreate, payload), INVENTORY_MONEY_FIELDS)
            row = SQLInventory(**data)
            row.broker_id = broker_id
            self.db.add(row)
            commit(self.db, "create inventory", refresh=row)
        except BackofficeError as e:
            return MutationResult.failure(e)

        logger.info(f"Inventory {row.inventory_id} created by {broker_id}")
        self._invalidate()
        return MutationResult.ok("Inventory created", row.to_dict())

    def update_fields(self, inventory_id: str, partial: Payload) -> MutationResult:
        try:
            data = column_values(validate_payload(InventoryUpdate, partial), INVENTORY_MONEY_FIELDS, partial=True)
            row = self._load(inventory_id)
            apply_fields(row, data, protected=SERVER_FIELDS)
            commit(self.db, "update inventory", refresh=row)
        except BackofficeError as e:
            return MutationResult.failure(e)

        self._invalidate()
        return MutationResult.ok("Inventory updated", row.to_dict())

    def set_status(self, inventory_id: str, status) -> MutationResult:
        """Any status may follow any other; there is no workflow to respect."""
        try:
            update = validate_payload(InventoryStatusUpdate, {"status": status})
        except BackofficeError as e:
            return MutationResult.failure(e)
        return self.update_fields(inventory_id, {"unit_status": update.status})

    def delete(self, inventory_id: str) -> MutationResult:
        try:
            row = self._load(inventory_id)
            self.db.delete(row)
            commit(self.db, "delete inventory")
        except BackofficeError as e:
            return MutationResult.failure(e)

        logger.info(f"Inventory {inventory_id} deleted")
        self._invalidate()
        return MutationResult.ok("Inventory deleted")

    # --- Helpers ---

    def _find(self, inventory_id: str) -> Optional[SQLInventory]:
        return fetch(self.db, "fetch inventory", lambda: self.db.get(SQLInventory, inventory_id))

    def _load(self, inventory_id: str) -> SQLInventory:
        row = self._find(inventory_id)
        if row is None:
            raise NotFound(f"Inventory {inventory_id} not found")
        return row

    def _invalidate(self) -> None:
        if self.cache is not None:
            self.cache.invalidate(KIND)
