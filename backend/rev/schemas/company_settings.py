from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional
from datetime import datetime
import uuid

DEFAULT_COUNTRY = "Côte d'Ivoire"


class CompanySettingsBase(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    logo: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = DEFAULT_COUNTRY
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    website: Optional[str] = None
    rccm: Optional[str] = None
    nif: Optional[str] = None
    bank_name: Optional[str] = None
    bank_account: Optional[str] = None
    bank_iban: Optional[str] = None
    bank_swift: Optional[str] = None
    legal_form: Optional[str] = None
    capital: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        return v or None


class CompanySettingsUpdate(CompanySettingsBase):
    pass


class CompanySettings(CompanySettingsBase):
    id: Optional[uuid.UUID] = None # None until the user saves settings once
    user_id: uuid.UUID
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
