from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from enum import Enum
import uuid

from .tag import TagSummary


class FileCategoryEnum(str, Enum):
    DOCUMENT = "DOCUMENT"
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"
    AUDIO = "AUDIO"
    ARCHIVE = "ARCHIVE"
    CONTRACT = "CONTRACT"
    INVOICE = "INVOICE"
    RECEIPT = "RECEIPT"
    OTHER = "OTHER"


class FileUpdate(BaseModel):
    description: Optional[str] = None
    category: Optional[FileCategoryEnum] = None
    project_id: Optional[uuid.UUID] = None
    client_id: Optional[uuid.UUID] = None
    tag_ids: Optional[List[uuid.UUID]] = None


class File(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    filename: str
    original_name: str
    url: str
    size: int
    mime_type: str
    category: FileCategoryEnum
    description: Optional[str] = None
    project_id: Optional[uuid.UUID] = None
    client_id: Optional[uuid.UUID] = None
    tags: List[TagSummary] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
