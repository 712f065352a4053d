from pydantic import BaseModel, EmailStr, constr, field_validator
from typing import Optional, List
from datetime import datetime
import uuid

from .tag import TagSummary


class ClientBase(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    company: Optional[str] = None
    notes: Optional[str] = None
    photo: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        # Forms send "" for an untouched email field
        return v or None


class ClientCreate(ClientBase):
    tag_ids: List[uuid.UUID] = []


class ClientUpdate(BaseModel):
    name: Optional[constr(strip_whitespace=True, min_length=1, max_length=255)] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    company: Optional[str] = None
    notes: Optional[str] = None
    photo: Optional[str] = None
    tag_ids: Optional[List[uuid.UUID]] = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        return v or None


class Client(ClientBase):
    id: uuid.UUID
    user_id: uuid.UUID
    tags: List[TagSummary] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClientSummary(BaseModel):
    id: uuid.UUID
    name: str
    email: Optional[str] = None
    company: Optional[str] = None

    class Config:
        from_attributes = True
