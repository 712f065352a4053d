from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import Optional
import uuid

from rev.models.company_settings import CompanySettings as CompanySettingsModel
from rev.schemas.company_settings import CompanySettingsUpdate


async def get_company_settings(db: AsyncSession, *, user_id: uuid.UUID) -> Optional[CompanySettingsModel]:
    result = await db.execute(
        select(CompanySettingsModel).filter(CompanySettingsModel.user_id == user_id)
    )
    return result.scalars().first()


async def upsert_company_settings(
    db: AsyncSession, *, user_id: uuid.UUID, obj_in: CompanySettingsUpdate
) -> CompanySettingsModel:
    db_obj = await get_company_settings(db, user_id=user_id)
    if db_obj is None:
        db_obj = CompanySettingsModel(user_id=user_id)
    for field, value in obj_in.model_dump(exclude_unset=True).items():
        setattr(db_obj, field, value)
    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj
