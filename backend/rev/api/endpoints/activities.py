from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Any, Optional
import uuid

from rev import crud, models, schemas
from rev.db.session import get_db
from rev.api import deps

router = APIRouter()


@router.get("/", response_model=List[schemas.Activity])
async def read_activities(
    *,
    db: AsyncSession = Depends(get_db),
    limit: int = Query(50, ge=1, le=200),
    activity_type: Optional[schemas.ActivityTypeEnum] = Query(None, alias="type"),
    project_id: Optional[uuid.UUID] = None,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    return await crud.activity.get_activities(
        db, user_id=current_user.id, activity_type=activity_type, project_id=project_id, limit=limit
    )


@router.post("/", response_model=schemas.Activity, status_code=status.HTTP_201_CREATED)
async def create_new_activity(
    *,
    db: AsyncSession = Depends(get_db),
    activity_in: schemas.ActivityCreate,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    await deps.ensure_project_owned(db, activity_in.project_id, current_user.id)
    await deps.ensure_task_owned(db, activity_in.task_id, current_user.id)
    await deps.ensure_client_owned(db, activity_in.client_id, current_user.id)
    return await crud.activity.create_activity(db, activity_in=activity_in, user_id=current_user.id)
