from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from datetime import datetime, timezone
from typing import List, Optional
import uuid

from rev.models.task import Task as TaskModel
from rev.schemas.task import TaskCreate, TaskUpdate, TaskStatusEnum, TaskPriorityEnum
from rev.crud.crud_tag import get_tags_by_ids


async def get_task(db: AsyncSession, *, task_id: uuid.UUID, user_id: uuid.UUID) -> Optional[TaskModel]:
    result = await db.execute(
        select(TaskModel).filter(TaskModel.id == task_id, TaskModel.user_id == user_id)
    )
    return result.scalars().first()


async def get_tasks(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    project_id: Optional[uuid.UUID] = None,
    status: Optional[TaskStatusEnum] = None,
    priority: Optional[TaskPriorityEnum] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[TaskModel]:
    query = select(TaskModel).filter(TaskModel.user_id == user_id)
    if project_id: query = query.filter(TaskModel.project_id == project_id)
    if status: query = query.filter(TaskModel.status == status)
    if priority: query = query.filter(TaskModel.priority == priority)
    query = query.order_by(TaskModel.due_date.is_(None), TaskModel.due_date, TaskModel.created_at.desc())
    result = await db.execute(query.offset(skip).limit(limit))
    return list(result.scalars().all())


async def create_task(db: AsyncSession, *, task_in: TaskCreate, user_id: uuid.UUID) -> TaskModel:
    db_obj = TaskModel(**task_in.model_dump(exclude={"tag_ids"}), user_id=user_id)
    if task_in.status == TaskStatusEnum.DONE:
        db_obj.completed_at = datetime.now(timezone.utc)
    db_obj.tags = await get_tags_by_ids(db, tag_ids=task_in.tag_ids, user_id=user_id)
    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def update_task(db: AsyncSession, *, db_obj: TaskModel, obj_in: TaskUpdate) -> TaskModel:
    """
    Update a task. Moving into DONE stamps completed_at, moving out of it clears it.
    """
    update_data = obj_in.model_dump(exclude_unset=True, exclude={"tag_ids"})
    for required in ("title", "status", "priority"):
        if required in update_data and update_data[required] is None:
            del update_data[required]

    new_status = update_data.get("status")
    if new_status and new_status != db_obj.status:
        if new_status == TaskStatusEnum.DONE:
            db_obj.completed_at = datetime.now(timezone.utc)
        elif db_obj.status == TaskStatusEnum.DONE:
            db_obj.completed_at = None

    for field, value in update_data.items():
        setattr(db_obj, field, value)
    if obj_in.tag_ids is not None:
        db_obj.tags = await get_tags_by_ids(db, tag_ids=obj_in.tag_ids, user_id=db_obj.user_id)

    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def delete_task(db: AsyncSession, *, db_obj: TaskModel) -> TaskModel:
    await db.delete(db_obj)
    await db.commit()
    return db_obj
