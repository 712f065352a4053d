from pydantic import BaseModel, Field, constr
from typing import Optional
from datetime import datetime
import uuid

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"
DEFAULT_TAG_COLOR = "#3B82F6"


class TagBase(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=50)
    color: str = Field(default=DEFAULT_TAG_COLOR, pattern=HEX_COLOR_PATTERN)
    description: Optional[str] = None


class TagCreate(TagBase):
    pass


class TagUpdate(BaseModel):
    name: Optional[constr(strip_whitespace=True, min_length=1, max_length=50)] = None
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)
    description: Optional[str] = None


class TagSummary(BaseModel):
    id: uuid.UUID
    name: str
    color: str

    class Config:
        from_attributes = True


class TagUsage(BaseModel):
    projects: int = 0
    clients: int = 0
    tasks: int = 0
    files: int = 0


class Tag(TagBase):
    id: uuid.UUID
    user_id: uuid.UUID
    created_at: Optional[datetime] = None
    usage: Optional[TagUsage] = None

    class Config:
        from_attributes = True
