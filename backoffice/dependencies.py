"""FastAPI dependencies wiring request sessions to the services."""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from .core.config import get_settings
from .core.database_client import get_db
from .core.view_cache import ListViewCache
from .services.dashboard_service import DashboardService
from .services.deal_service import DealService
from .services.import_service import ImportService
from .services.inventory_service import InventoryService
from .services.requirement_service import RequirementService
from .services.user_service import UserService


@lru_cache()
def get_list_cache() -> ListViewCache:
    """One cache per process, shared by every request."""
    settings = get_settings()
    return ListViewCache(
        ttl_seconds=settings.list_cache_ttl_seconds,
        max_entries=settings.list_cache_max_entries,
    )


def get_inventory_service(db: Session = Depends(get_db), cache: ListViewCache = Depends(get_list_cache)):
    return InventoryService(db, cache, get_settings().query)


def get_requirement_service(db: Session = Depends(get_db), cache: ListViewCache = Depends(get_list_cache)):
    return RequirementService(db, cache, get_settings().query)


def get_user_service(db: Session = Depends(get_db), cache: ListViewCache = Depends(get_list_cache)):
    return UserService(db, cache, get_settings().query)


def get_deal_service(db: Session = Depends(get_db), cache: ListViewCache = Depends(get_list_cache)):
    return DealService(db, cache)


def get_dashboard_service(db: Session = Depends(get_db)):
    return DashboardService(db)


def get_import_service(db: Session = Depends(get_db), cache: ListViewCache = Depends(get_list_cache)):
    return ImportService(db, cache)
