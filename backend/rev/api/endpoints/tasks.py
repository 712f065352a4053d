# backend/rev/api/endpoints/tasks.py
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Any, Optional
import uuid

from rev import crud, models, schemas
from rev.db.session import get_db
from rev.api import deps

router = APIRouter()


async def _get_owned_task(db: AsyncSession, task_id: uuid.UUID, user: models.User) -> models.Task:
    task = await crud.task.get_task(db, task_id=task_id, user_id=user.id)
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task


@router.post("/", response_model=schemas.Task, status_code=status.HTTP_201_CREATED)
async def create_new_task(
    *,
    db: AsyncSession = Depends(get_db),
    task_in: schemas.TaskCreate,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    await deps.ensure_project_owned(db, task_in.project_id, current_user.id)
    await deps.ensure_task_owned(db, task_in.parent_id, current_user.id)
    task = await crud.task.create_task(db, task_in=task_in, user_id=current_user.id)
    await crud.activity.record(
        db, user_id=current_user.id, activity_type=schemas.ActivityTypeEnum.TASK_CREATED,
        description=f"Task '{task.title}' created", task_id=task.id, project_id=task.project_id,
    )
    return task


@router.get("/", response_model=List[schemas.Task])
async def read_tasks(
    *,
    db: AsyncSession = Depends(get_db),
    project_id: Optional[uuid.UUID] = None,
    status_filter: Optional[schemas.TaskStatusEnum] = Query(None, alias="status"),
    priority: Optional[schemas.TaskPriorityEnum] = None,
    skip: int = 0,
    limit: int = Query(100, ge=1, le=500),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    return await crud.task.get_tasks(
        db, user_id=current_user.id, project_id=project_id, status=status_filter,
        priority=priority, skip=skip, limit=limit,
    )


@router.get("/{task_id}", response_model=schemas.Task)
async def read_task_by_id(
    task_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    return await _get_owned_task(db, task_id, current_user)


@router.put("/{task_id}", response_model=schemas.Task)
async def update_existing_task(
    task_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    task_in: schemas.TaskUpdate,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    db_task = await _get_owned_task(db, task_id, current_user)
    await deps.ensure_project_owned(db, task_in.project_id, current_user.id)
    if task_in.parent_id is not None:
        if task_in.parent_id == task_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A task cannot be its own parent")
        await deps.ensure_task_owned(db, task_in.parent_id, current_user.id)

    previous_status = db_task.status
    task = await crud.task.update_task(db, db_obj=db_task, obj_in=task_in)

    if task.status == schemas.TaskStatusEnum.DONE and previous_status != task.status:
        activity_type, description = schemas.ActivityTypeEnum.TASK_COMPLETED, f"Task '{task.title}' completed"
    else:
        activity_type, description = schemas.ActivityTypeEnum.TASK_UPDATED, f"Task '{task.title}' updated"
    await crud.activity.record(
        db, user_id=current_user.id, activity_type=activity_type, description=description,
        task_id=task.id, project_id=task.project_id,
    )
    return task


@router.delete("/{task_id}", response_model=schemas.Task)
async def delete_existing_task(
    task_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    db_task = await _get_owned_task(db, task_id, current_user)
    deleted_task_data = schemas.Task.model_validate(db_task)
    await crud.task.delete_task(db, db_obj=db_task)
    return deleted_task_data
