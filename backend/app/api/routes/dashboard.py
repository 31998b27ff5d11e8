"""Dashboard statistics for the home screen cards."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.core.permissions import franchise_scope
from app.models.user import User
from app.schemas.dashboard import DashboardStats
from app.services.dashboard_service import get_dashboard_stats

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
def dashboard_stats(
    franchise_id: Optional[int] = Query(None, description="Admins only: limit to one franchise"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Total orders, revenue, customers and low-stock inventory rows."""
    return get_dashboard_stats(db, franchise_scope(current_user, franchise_id))
