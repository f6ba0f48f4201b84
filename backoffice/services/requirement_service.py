import logging
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from .common import Payload, apply_fields, column_values, commit, fetch, validate_payload
from ..core.config import QueryConfig
from ..core.errors import BackofficeError, MutationResult, NotFound, ValidationError
from ..core.query_service import QueryResult, TabularQueryService
from ..core.view_cache import ListViewCache
from ..models.base import utcnow
from ..models.property import (
    REQUIREMENT_MONEY_FIELDS,
    RequirementCreate,
    RequirementStatusUpdate,
    RequirementUpdate,
)
from ..models.sql_deal import SQLDeal
from ..models.sql_property import SQLRequirement

logger = logging.getLogger(__name__)

KIND = "requirement"
SERVER_FIELDS = ("requirement_id", "user_id", "date_created")
# boolean columns the list screen toggles in place
TOGGLE_FLAGS = ("call", "viewing", "phpp", "shared_with_indian_channel_partner")


class RequirementService:
    def __init__(self, db: Session, cache: Optional[ListViewCache] = None, config: Optional[QueryConfig] = None):
        self.db = db
        self.cache = cache
        self.queries = TabularQueryService(db, config, cache)

    # --- Reads ---

    def list(self, params: Optional[Mapping[str, Any]] = None) -> QueryResult:
        """
        One page of requirements, each row flagged with whether a deal has
        already been opened for it.
        """
        page = self.queries.list(KIND, params)
        ids = [row["requirement_id"] for row in page.rows]

        with_deals = set()
        if ids:
            found = fetch(self.db, "fetch deal status", lambda: (
                self.db.query(SQLDeal.requirement_id)
                .filter(SQLDeal.requirement_id.in_(ids))
                .distinct()
                .all()
            ))
            with_deals = {requirement_id for (requirement_id,) in found}

        # the page may be shared through the list cache, so build fresh rows
        rows = [dict(row, has_deal=row["requirement_id"] in with_deals) for row in page.rows]
        return QueryResult(rows=rows, total=page.total, page=page.page, page_size=page.page_size)

    def get(self, requirement_id: str) -> Optional[Dict[str, Any]]:
        row = self._find(requirement_id)
        return row.to_dict() if row else None

    def stale_unassigned(self, days: int = 7, limit: int = 10) -> List[Dict[str, Any]]:
        """Oldest requirements still without a deal after `days` days."""
        cutoff = utcnow() - timedelta(days=days)
        rows = fetch(self.db, "fetch stale requirements", lambda: (
            self.db.query(SQLRequirement)
            .outerjoin(SQLDeal, SQLDeal.requirement_id == SQLRequirement.requirement_id)
            .filter(SQLDeal.deal_id.is_(None))
            .filter(SQLRequirement.date_created <= cutoff)
            .order_by(SQLRequirement.date_created.asc())
            .limit(limit)
            .all()
        ))
        return [
            {"requirement_id": r.requirement_id, "demand": r.demand, "date_created": r.date_created.isoformat()}
            for r in rows
        ]

    # --- Writes ---

    def create(self, payload: Payload, user_id: str) -> MutationResult:
        try:
            row = self._new_row(payload, user_id)
            self.db.add(row)
            commit(self.db, "create requirement", refresh=row)
        except BackofficeError as e:
            return MutationResult.failure(e)

        logger.info(f"Requirement {row.requirement_id} created by {user_id}")
        self._invalidate()
        return MutationResult.ok("Requirement created", row.to_dict())

    def update_fields(self, requirement_id: str, partial: Payload) -> MutationResult:
        try:
            data = column_values(validate_payload(RequirementUpdate, partial), REQUIREMENT_MONEY_FIELDS, partial=True)
            row = self._load(requirement_id)
            apply_fields(row, data, protected=SERVER_FIELDS)
            commit(self.db, "update requirement", refresh=row)
        except BackofficeError as e:
            return MutationResult.failure(e)

        self._invalidate()
        return MutationResult.ok("Requirement updated", row.to_dict())

    def set_status(self, requirement_id: str, status) -> MutationResult:
        try:
            update = validate_payload(RequirementStatusUpdate, {"status": status})
        except BackofficeError as e:
            return MutationResult.failure(e)
        return self.update_fields(requirement_id, {"status": update.status})

    def set_flag(self, requirement_id: str, flag: str, value: bool) -> MutationResult:
        if flag not in TOGGLE_FLAGS:
            return MutationResult.failure(ValidationError([f"{flag}: not a toggleable flag"]))
        return self.update_fields(requirement_id, {flag: value})

    # --- Helpers ---

    def _new_row(self, payload: Payload, user_id: str) -> SQLRequirement:
        data = column_values(validate_payload(RequirementCreate, payload), REQUIREMENT_MONEY_FIELDS)
        row = SQLRequirement(**data)
        row.user_id = user_id
        return row

    def _find(self, requirement_id: str) -> Optional[SQLRequirement]:
        return fetch(self.db, "fetch requirement", lambda: self.db.get(SQLRequirement, requirement_id))

    def _load(self, requirement_id: str) -> SQLRequirement:
        row = self._find(requirement_id)
        if row is None:
            raise NotFound(f"Requirement {requirement_id} not found")
        return row

    def _invalidate(self) -> None:
        if self.cache is not None:
            self.cache.invalidate(KIND)
