from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from rev import crud, models, schemas # schemas for DashboardStats & DashboardFilters
from rev.db.session import get_db
from rev.api import deps

router = APIRouter()


@router.get("/stats", response_model=schemas.DashboardStats)
async def get_user_dashboard_stats(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user),
    filters: schemas.DashboardFilters = Depends()
):
    """
    Retrieve dashboard statistics for the authenticated user.
    Revenue is filtered on the payment date, expenses on their own date.
    """
    stats_data = await crud.dashboard.get_dashboard_stats(
        db,
        user_id=current_user.id,
        currency=current_user.currency,
        start_date=filters.start_date,
        end_date=filters.end_date,
    )
    return stats_data # Pydantic will validate this dict against DashboardStats schema
