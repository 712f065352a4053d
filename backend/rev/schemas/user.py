from pydantic import BaseModel, EmailStr, Field, constr, model_validator
from typing import Optional
from datetime import datetime
import uuid


class UserBase(BaseModel):
    email: EmailStr
    full_name: Optional[str] = None
    is_active: bool = True


class UserRegister(BaseModel):
    name: constr(min_length=2, max_length=255)
    email: EmailStr
    password: constr(min_length=6)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UserCreate(UserBase):
    password: constr(min_length=6)


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    full_name: Optional[constr(min_length=2, max_length=255)] = None
    password: Optional[constr(min_length=6)] = None
    company_name: Optional[str] = None
    company_logo: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    currency: Optional[constr(min_length=3, max_length=3)] = None
    smtp_host: Optional[str] = None
    smtp_port: Optional[int] = Field(default=None, ge=1, le=65535)
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from: Optional[EmailStr] = None
    email_notifications: Optional[bool] = None


class UserOut(UserBase):
    id: uuid.UUID
    company_name: Optional[str] = None
    company_logo: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    currency: str = "XOF"
    smtp_host: Optional[str] = None
    smtp_port: Optional[int] = None
    smtp_user: Optional[str] = None
    smtp_from: Optional[str] = None
    email_notifications: bool = True
    # Secrets never leave the server, only whether they are set
    wave_configured: bool = False
    wave_webhook_configured: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WaveSettingsUpdate(BaseModel):
    wave_api_key: Optional[str] = None
    wave_webhook_secret: Optional[str] = None


class WebhookSecretOut(BaseModel):
    webhook_secret: str
    webhook_url: str


class SmtpStatus(BaseModel):
    configured: bool
    host: Optional[str] = None
    from_address: Optional[str] = None


class Token(BaseModel):
    access_token: str
    token_type: str


class TokenPayload(BaseModel):
    sub: Optional[str] = None # user id
