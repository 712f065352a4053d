from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from datetime import datetime, timezone
import math
from typing import List, Optional
import uuid

from rev.models.time_entry import TimeEntry as TimeEntryModel
from rev.schemas.time_entry import TimeEntryCreate, TimeEntryUpdate
from rev.crud.crud_expense import as_utc


def duration_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, halves rounded up."""
    seconds = (as_utc(end) - as_utc(start)).total_seconds()
    return max(0, math.floor(seconds / 60 + 0.5))


def _stop(entry: TimeEntryModel, end: datetime) -> None:
    entry.end_time = end
    entry.duration = duration_minutes(entry.start_time, end)
    entry.is_running = False


async def get_time_entry(
    db: AsyncSession, *, entry_id: uuid.UUID, user_id: uuid.UUID
) -> Optional[TimeEntryModel]:
    result = await db.execute(
        select(TimeEntryModel).filter(TimeEntryModel.id == entry_id, TimeEntryModel.user_id == user_id)
    )
    return result.scalars().first()


async def get_time_entries(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    project_id: Optional[uuid.UUID] = None,
    task_id: Optional[uuid.UUID] = None,
    is_running: Optional[bool] = None,
    limit: int = 100,
) -> List[TimeEntryModel]:
    query = select(TimeEntryModel).filter(TimeEntryModel.user_id == user_id)
    if start_date: query = query.filter(TimeEntryModel.start_time >= start_date)
    if end_date: query = query.filter(TimeEntryModel.start_time <= end_date)
    if project_id: query = query.filter(TimeEntryModel.project_id == project_id)
    if task_id: query = query.filter(TimeEntryModel.task_id == task_id)
    if is_running is not None: query = query.filter(TimeEntryModel.is_running.is_(is_running))
    query = query.order_by(TimeEntryModel.start_time.desc()).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


def summarize(entries: List[TimeEntryModel]) -> dict:
    total_minutes = sum(entry.duration or 0 for entry in entries)
    return {
        "total_entries": len(entries),
        "total_minutes": total_minutes,
        "total_hours": round(total_minutes / 60, 2),
        "running_entries": sum(1 for entry in entries if entry.is_running),
    }


async def stop_running_entries(db: AsyncSession, *, user_id: uuid.UUID, now: Optional[datetime] = None) -> int:
    """Stop every running timer of the user without committing."""
    now = now or datetime.now(timezone.utc)
    running = await get_time_entries(db, user_id=user_id, is_running=True, limit=1000)
    for entry in running:
        _stop(entry, now)
        db.add(entry)
    return len(running)


async def create_time_entry(
    db: AsyncSession, *, entry_in: TimeEntryCreate, user_id: uuid.UUID
) -> TimeEntryModel:
    """
    Create a time entry. Starting a timer stops whichever timer was running.
    """
    if entry_in.is_running:
        await stop_running_entries(db, user_id=user_id)

    db_obj = TimeEntryModel(**entry_in.model_dump(), user_id=user_id)
    if entry_in.end_time:
        db_obj.duration = duration_minutes(entry_in.start_time, entry_in.end_time)
    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def update_time_entry(
    db: AsyncSession, *, db_obj: TimeEntryModel, obj_in: TimeEntryUpdate
) -> TimeEntryModel:
    update_data = obj_in.model_dump(exclude_unset=True)
    if "description" in update_data:
        db_obj.description = update_data["description"]

    if update_data.get("end_time"):
        if as_utc(update_data["end_time"]) < as_utc(db_obj.start_time):
            raise ValueError("end_time must be after start_time")
        _stop(db_obj, update_data["end_time"])
    elif update_data.get("is_running") is False and db_obj.is_running:
        _stop(db_obj, datetime.now(timezone.utc))

    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def delete_time_entry(db: AsyncSession, *, db_obj: TimeEntryModel) -> None:
    await db.delete(db_obj)
    await db.commit()
