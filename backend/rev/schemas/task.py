from pydantic import BaseModel, constr
from typing import Optional, List
from datetime import datetime
from enum import Enum
import uuid

from .tag import TagSummary


class TaskStatusEnum(str, Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW = "REVIEW"
    DONE = "DONE"
    CANCELLED = "CANCELLED"


class TaskPriorityEnum(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class TaskBase(BaseModel):
    title: constr(strip_whitespace=True, min_length=1, max_length=255)
    description: Optional[str] = None
    status: TaskStatusEnum = TaskStatusEnum.TODO
    priority: TaskPriorityEnum = TaskPriorityEnum.MEDIUM
    due_date: Optional[datetime] = None
    project_id: Optional[uuid.UUID] = None
    parent_id: Optional[uuid.UUID] = None


class TaskCreate(TaskBase):
    tag_ids: List[uuid.UUID] = []


class TaskUpdate(BaseModel):
    title: Optional[constr(strip_whitespace=True, min_length=1, max_length=255)] = None
    description: Optional[str] = None
    status: Optional[TaskStatusEnum] = None
    priority: Optional[TaskPriorityEnum] = None
    due_date: Optional[datetime] = None
    project_id: Optional[uuid.UUID] = None
    parent_id: Optional[uuid.UUID] = None
    tag_ids: Optional[List[uuid.UUID]] = None


class Task(TaskBase):
    id: uuid.UUID
    user_id: uuid.UUID
    completed_at: Optional[datetime] = None
    tags: List[TagSummary] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
