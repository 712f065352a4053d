from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any

from rev import crud, models, schemas
from rev.db.session import get_db
from rev.api import deps

router = APIRouter()


@router.get("/company", response_model=schemas.CompanySettings)
async def read_company_settings(
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    """
    Company details printed on documents. Defaults are returned until saved once.
    """
    company = await crud.company_settings.get_company_settings(db, user_id=current_user.id)
    if company is None:
        return schemas.CompanySettings(user_id=current_user.id)
    return company


@router.put("/company", response_model=schemas.CompanySettings)
async def update_company_settings(
    *,
    db: AsyncSession = Depends(get_db),
    settings_in: schemas.CompanySettingsUpdate,
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    return await crud.company_settings.upsert_company_settings(
        db, user_id=current_user.id, obj_in=settings_in
    )
