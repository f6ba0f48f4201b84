"""
Bulk import of inventory and requirements from CSV.

The header row names fields in snake_case exactly as the create payloads do.
Every row is one create call; rows that already carry an id are skipped,
since ids are always assigned by the server.
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from .inventory_service import InventoryService
from .requirement_service import RequirementService
from ..core.errors import ValidationError
from ..core.view_cache import ListViewCache
from ..models.enums import InventoryStatus, RequirementCategory, RtmOffplan, values
from ..models.property import InventoryCreate, RequirementCreate

logger = logging.getLogger(__name__)

BOOLEAN_FIELDS = {"phpp", "call", "viewing", "shared_with_indian_channel_partner", "phpp_eligible"}

# column -> (accepted values, fallback)
ENUM_FALLBACKS = {
    "inventory": {"unit_status": (values(InventoryStatus), InventoryStatus.AVAILABLE.value)},
    "requirement": {
        "category": (values(RequirementCategory), RequirementCategory.RISE.value),
        "rtm_offplan": (values(RtmOffplan), RtmOffplan.NONE.value),
    },
}

# older templates spell the combined value with a slash
ENUM_ALIASES = {"RTM/OFFPLAN": RtmOffplan.RTM_OFFPLAN.value}

ID_COLUMNS = {"inventory": "inventory_id", "requirement": "requirement_id"}
CREATE_MODELS = {"inventory": InventoryCreate, "requirement": RequirementCreate}


@dataclass
class ImportReport:
    created: int = 0
    skipped: int = 0
    failed: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"created": self.created, "skipped": self.skipped, "failed": self.failed}


def parse_bool(value: str) -> bool:
    return value.strip().lower() == "true"


def row_payload(kind: str, row: Dict[str, Optional[str]]) -> Dict[str, Any]:
    """Map one CSV row onto the create payload for `kind`; unknown and blank cells are dropped."""
    known = CREATE_MODELS[kind].model_fields
    enums = ENUM_FALLBACKS[kind]
    payload = {}
    for column, cell in row.items():
        if column is None or cell is None:
            continue
        column = column.strip()
        cell = cell.strip()
        if column not in known:
            continue
        if column in enums:
            accepted, fallback = enums[column]
            cell = ENUM_ALIASES.get(cell, cell)
            payload[column] = cell if cell in accepted else fallback
        elif not cell:
            continue
        elif column in BOOLEAN_FIELDS:
            payload[column] = parse_bool(cell)
        else:
            payload[column] = cell
    return payload


class ImportService:
    def __init__(self, db: Session, cache: Optional[ListViewCache] = None):
        self.services = {
            "inventory": InventoryService(db, cache),
            "requirement": RequirementService(db, cache),
        }

    def import_csv(self, kind: str, text: str, user_id: str) -> ImportReport:
        """
        Create one `kind` record per CSV row on behalf of `user_id`.

        Raises:
            ValidationError: unknown kind or a file without a header row
        """
        if kind not in self.services:
            raise ValidationError([f"kind: must be one of {', '.join(sorted(self.services))}"])

        reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
        if not reader.fieldnames:
            raise ValidationError(["file: CSV header row is missing"])

        report = ImportReport()
        id_column = ID_COLUMNS[kind]
        # data rows are numbered from 2, the header being line 1
        for number, row in enumerate(reader, start=2):
            if not any((cell or "").strip() for cell in row.values() if isinstance(cell, str)):
                continue
            if (row.get(id_column) or "").strip():
                report.skipped += 1
                continue

            result = self.services[kind].create(row_payload(kind, row), user_id)
            if result.success:
                report.created += 1
            else:
                report.failed.append({"row": number, "errors": result.errors or [result.message]})

        logger.info(
            f"Imported {kind} CSV for {user_id}: {report.created} created, "
            f"{report.skipped} skipped, {len(report.failed)} failed"
        )
        return report
