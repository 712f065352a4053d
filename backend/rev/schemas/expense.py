from pydantic import BaseModel, Field, constr, model_validator
from typing import Optional
from datetime import datetime, timezone
from enum import Enum
import uuid


class ExpenseTypeEnum(str, Enum):
    GENERAL = "GENERAL"
    PROJECT = "PROJECT"


class SubscriptionPeriodEnum(str, Enum):
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class ExpenseBase(BaseModel):
    description: constr(strip_whitespace=True, min_length=1)
    amount: float = Field(..., ge=0)
    category: Optional[str] = None
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    notes: Optional[str] = None
    type: ExpenseTypeEnum = ExpenseTypeEnum.GENERAL
    project_id: Optional[uuid.UUID] = None
    is_subscription: bool = False
    subscription_period: Optional[SubscriptionPeriodEnum] = None
    next_renewal_date: Optional[datetime] = None
    reminder_days: int = Field(default=7, ge=0, le=365)
    is_active: bool = True


class ExpenseCreate(ExpenseBase):
    @model_validator(mode="after")
    def check_subscription_fields(self):
        if self.is_subscription and not self.subscription_period:
            raise ValueError("subscription_period is required for a subscription")
        return self


class ExpenseUpdate(BaseModel):
    description: Optional[constr(strip_whitespace=True, min_length=1)] = None
    amount: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = None
    date: Optional[datetime] = None
    notes: Optional[str] = None
    type: Optional[ExpenseTypeEnum] = None
    project_id: Optional[uuid.UUID] = None
    is_subscription: Optional[bool] = None
    subscription_period: Optional[SubscriptionPeriodEnum] = None
    next_renewal_date: Optional[datetime] = None
    reminder_days: Optional[int] = Field(default=None, ge=0, le=365)
    is_active: Optional[bool] = None


class Expense(ExpenseBase):
    id: uuid.UUID
    user_id: uuid.UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
