from pydantic import BaseModel, field_validator, model_validator
from typing import Optional, List
from datetime import datetime, timezone
import uuid


def _assume_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Times sent without an offset are read as UTC, like the stored values
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TimeEntryCreate(BaseModel):
    description: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    is_running: bool = False
    project_id: Optional[uuid.UUID] = None
    task_id: Optional[uuid.UUID] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def assume_utc(cls, v):
        return _assume_utc(v)

    @model_validator(mode="after")
    def check_times(self):
        if self.end_time and self.end_time < self.start_time:
            raise ValueError("end_time must be after start_time")
        if self.is_running and self.end_time:
            raise ValueError("a running entry cannot have an end_time")
        return self


class TimeEntryUpdate(BaseModel):
    description: Optional[str] = None
    end_time: Optional[datetime] = None
    is_running: Optional[bool] = None

    @field_validator("end_time")
    @classmethod
    def assume_utc(cls, v):
        return _assume_utc(v)


class TimeEntry(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    description: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[int] = None # minutes
    is_running: bool
    project_id: Optional[uuid.UUID] = None
    task_id: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TimeSummary(BaseModel):
    total_entries: int
    total_minutes: int
    total_hours: float
    running_entries: int


class TimeEntryList(BaseModel):
    time_entries: List[TimeEntry]
    summary: TimeSummary
