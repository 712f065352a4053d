from pydantic import BaseModel, constr
from typing import Optional, Dict, Any
from datetime import datetime
from enum import Enum
import uuid


class ActivityTypeEnum(str, Enum):
    PROJECT_CREATED = "PROJECT_CREATED"
    PROJECT_UPDATED = "PROJECT_UPDATED"
    PROJECT_COMPLETED = "PROJECT_COMPLETED"
    TASK_CREATED = "TASK_CREATED"
    TASK_UPDATED = "TASK_UPDATED"
    TASK_COMPLETED = "TASK_COMPLETED"
    INVOICE_CREATED = "INVOICE_CREATED"
    INVOICE_SENT = "INVOICE_SENT"
    CLIENT_ADDED = "CLIENT_ADDED"
    FILE_UPLOADED = "FILE_UPLOADED"
    EXPENSE_CREATED = "EXPENSE_CREATED"
    WAVE_TRANSACTION_ASSIGNED = "WAVE_TRANSACTION_ASSIGNED"


class ActivityCreate(BaseModel):
    type: ActivityTypeEnum
    description: constr(strip_whitespace=True, min_length=1)
    details: Optional[Dict[str, Any]] = None
    project_id: Optional[uuid.UUID] = None
    task_id: Optional[uuid.UUID] = None
    client_id: Optional[uuid.UUID] = None
    invoice_id: Optional[uuid.UUID] = None


class Activity(ActivityCreate):
    id: uuid.UUID
    user_id: uuid.UUID
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
