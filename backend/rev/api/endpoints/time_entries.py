# backend/rev/api/endpoints/time_entries.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime
from typing import Any, Optional
import uuid

from rev import crud, models, schemas
from rev.db.session import get_db
from rev.api import deps

router = APIRouter()


async def _get_owned_entry(db: AsyncSession, entry_id: uuid.UUID, user: models.User) -> models.TimeEntry:
    entry = await crud.time_entry.get_time_entry(db, entry_id=entry_id, user_id=user.id)
    if not entry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Time entry not found")
    return entry


@router.get("/", response_model=schemas.TimeEntryList)
async def read_time_entries(
    *,
    db: AsyncSession = Depends(get_db),
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    project_id: Optional[uuid.UUID] = None,
    task_id: Optional[uuid.UUID] = None,
    is_running: Optional[bool] = None,
    limit: int = Query(100, ge=1, le=1000),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    """
    Time entries matching the filters, with totals over the returned entries.
    """
    entries = await crud.time_entry.get_time_entries(
        db, user_id=current_user.id, start_date=start_date, end_date=end_date,
        project_id=project_id, task_id=task_id, is_running=is_running, limit=limit,
    )
    return {"time_entries": entries, "summary": crud.time_entry.summarize(entries)}


@router.post("/", response_model=schemas.TimeEntry, status_code=status.HTTP_201_CREATED)
async def create_new_time_entry(
    *,
    db: AsyncSession = Depends(get_db),
    entry_in: schemas.TimeEntryCreate,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    """
    Log time, or start a timer with ``is_running``. Only one timer runs at a time.
    """
    await deps.ensure_project_owned(db, entry_in.project_id, current_user.id)
    await deps.ensure_task_owned(db, entry_in.task_id, current_user.id)
    return await crud.time_entry.create_time_entry(db, entry_in=entry_in, user_id=current_user.id)


@router.get("/{entry_id}", response_model=schemas.TimeEntry)
async def read_time_entry(
    entry_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    return await _get_owned_entry(db, entry_id, current_user)


@router.put("/{entry_id}", response_model=schemas.TimeEntry)
async def update_existing_time_entry(
    entry_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    entry_in: schemas.TimeEntryUpdate,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    db_entry = await _get_owned_entry(db, entry_id, current_user)
    try:
        return await crud.time_entry.update_time_entry(db, db_obj=db_entry, obj_in=entry_in)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_existing_time_entry(
    entry_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
):
    db_entry = await _get_owned_entry(db, entry_id, current_user)
    await crud.time_entry.delete_time_entry(db, db_obj=db_entry)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
