from pydantic import BaseModel, constr
from typing import Optional, Dict, Any, List
from datetime import datetime
from enum import Enum
import uuid


class NotificationTypeEnum(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    SUCCESS = "SUCCESS"
    WAVE_PAYMENT_RECEIVED = "WAVE_PAYMENT_RECEIVED"
    WAVE_PAYMENT_FAILED = "WAVE_PAYMENT_FAILED"
    WAVE_CHECKOUT_COMPLETED = "WAVE_CHECKOUT_COMPLETED"
    WAVE_CHECKOUT_FAILED = "WAVE_CHECKOUT_FAILED"
    INVOICE_PAID = "INVOICE_PAID"
    INVOICE_OVERDUE = "INVOICE_OVERDUE"
    PROJECT_DEADLINE = "PROJECT_DEADLINE"
    TASK_DUE = "TASK_DUE"
    SUBSCRIPTION_REMINDER = "SUBSCRIPTION_REMINDER"
    PROVIDER_PAYMENT_COMPLETED = "PROVIDER_PAYMENT_COMPLETED"
    PROVIDER_PAYMENT_FAILED = "PROVIDER_PAYMENT_FAILED"


class NotificationCreate(BaseModel):
    title: constr(strip_whitespace=True, min_length=1, max_length=255)
    message: constr(strip_whitespace=True, min_length=1)
    type: NotificationTypeEnum = NotificationTypeEnum.INFO
    related_type: Optional[str] = None
    related_id: Optional[str] = None
    action_url: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class Notification(NotificationCreate):
    id: uuid.UUID
    user_id: uuid.UUID
    is_read: bool = False
    email_sent: bool = False
    email_sent_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NotificationList(BaseModel):
    notifications: List[Notification]
    unread_count: int


class MarkAllReadResult(BaseModel):
    updated: int
