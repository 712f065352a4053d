from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import List, Optional
import uuid

from rev.models.activity import Activity as ActivityModel
from rev.schemas.activity import ActivityCreate, ActivityTypeEnum


async def get_activities(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    activity_type: Optional[ActivityTypeEnum] = None,
    project_id: Optional[uuid.UUID] = None,
    limit: int = 50,
) -> List[ActivityModel]:
    query = select(ActivityModel).filter(ActivityModel.user_id == user_id)
    if activity_type:
        query = query.filter(ActivityModel.type == activity_type)
    if project_id:
        query = query.filter(ActivityModel.project_id == project_id)
    query = query.order_by(ActivityModel.created_at.desc()).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_activity(
    db: AsyncSession, *, activity_in: ActivityCreate, user_id: uuid.UUID
) -> ActivityModel:
    db_obj = ActivityModel(**activity_in.model_dump(), user_id=user_id)
    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def record(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    activity_type: ActivityTypeEnum,
    description: str,
    **links,
) -> ActivityModel:
    """Shortcut used by the endpoints after a successful write."""
    return await create_activity(
        db,
        activity_in=ActivityCreate(type=activity_type, description=description, **links),
        user_id=user_id,
    )
