from pydantic import BaseModel, Field, constr
from typing import Optional, List
from datetime import datetime
from enum import Enum
import uuid

from .tag import TagSummary


class ProjectTypeEnum(str, Enum):
    PERSONAL = "PERSONAL"
    CLIENT = "CLIENT"
    DEVELOPMENT = "DEVELOPMENT"
    MAINTENANCE = "MAINTENANCE"
    CONSULTING = "CONSULTING"


class ProjectStatusEnum(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    ON_HOLD = "ON_HOLD"
    CANCELLED = "CANCELLED"


class ProjectBase(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=255)
    description: Optional[str] = None
    type: ProjectTypeEnum = ProjectTypeEnum.CLIENT
    status: ProjectStatusEnum = ProjectStatusEnum.IN_PROGRESS
    amount: float = Field(default=0.0, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    client_id: Optional[uuid.UUID] = None
    logo: Optional[str] = None


class ProjectCreate(ProjectBase):
    tag_ids: List[uuid.UUID] = []


class ProjectUpdate(BaseModel):
    name: Optional[constr(strip_whitespace=True, min_length=1, max_length=255)] = None
    description: Optional[str] = None
    type: Optional[ProjectTypeEnum] = None
    status: Optional[ProjectStatusEnum] = None
    amount: Optional[float] = Field(default=None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    client_id: Optional[uuid.UUID] = None
    logo: Optional[str] = None
    tag_ids: Optional[List[uuid.UUID]] = None


class Project(ProjectBase):
    id: uuid.UUID
    user_id: uuid.UUID
    tags: List[TagSummary] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProjectSummary(BaseModel):
    id: uuid.UUID
    name: str
    status: ProjectStatusEnum
    amount: float
    end_date: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProjectBudget(BaseModel):
    project_id: uuid.UUID
    budget: float
    invoiced: float
    paid: float
    expenses: float
    remaining: float
    profit: float
    budget_used_percentage: float
