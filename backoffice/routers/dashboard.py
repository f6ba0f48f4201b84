from fastapi import APIRouter, Depends, Query

from ..core.auth import get_current_user
from ..dependencies import get_dashboard_service
from ..models.user import User
from ..services.dashboard_service import DashboardService

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("/summary")
def dashboard_summary(
    service: DashboardService = Depends(get_dashboard_service),
    current_user: User = Depends(get_current_user),
):
    return service.summary()


@router.get("/monthly")
def monthly_changes(
    months: int = Query(6, ge=1, le=24),
    service: DashboardService = Depends(get_dashboard_service),
    current_user: User = Depends(get_current_user),
):
    return service.monthly_changes(months)
