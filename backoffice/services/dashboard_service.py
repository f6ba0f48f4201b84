import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from .common import fetch
from ..models.base import utcnow
from ..models.enums import DealStage
from ..models.sql_deal import SQLDeal
from ..models.sql_property import SQLInventory, SQLRequirement

logger = logging.getLogger(__name__)


def month_start(moment: datetime, back: int = 0) -> datetime:
    """First instant of the month `back` months before `moment`."""
    index = moment.year * 12 + (moment.month - 1) - back
    return datetime(index // 12, index % 12 + 1, 1)


class DashboardService:
    def __init__(self, db: Session):
        self.db = db

    def _count(self, column, start: datetime, end: Optional[datetime] = None, *criteria) -> int:
        query = self.db.query(func.count()).select_from(column.class_).filter(column >= start, *criteria)
        if end is not None:
            query = query.filter(column < end)
        return fetch(self.db, "count dashboard figures", query.scalar) or 0

    def monthly_changes(self, months: int = 6, now: Optional[datetime] = None) -> Dict[str, List[Any]]:
        """Requirements and inventory created per month, oldest month first."""
        now = now or utcnow()
        result = {"months": [], "requirements": [], "inventory": []}
        for back in range(months - 1, -1, -1):
            start = month_start(now, back)
            end = month_start(now, back - 1)
            result["months"].append(start.strftime("%b"))
            result["requirements"].append(self._count(SQLRequirement.date_created, start, end))
            result["inventory"].append(self._count(SQLInventory.date_added, start, end))
        return result

    def summary(self, now: Optional[datetime] = None) -> Dict[str, int]:
        start = month_start(now or utcnow())
        summary = {
            "newRequirements": self._count(SQLRequirement.date_created, start),
            "inventoryChanges": self._count(SQLInventory.date_added, start),
            "recentDeals": self._count(SQLDeal.updated_at, start, None, SQLDeal.status == DealStage.CLOSED.value),
        }
        logger.debug(f"Dashboard summary since {start:%Y-%m}: {summary}")
        return summary
