from pydantic import BaseModel, Field, HttpUrl, constr
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum
import uuid


class WaveAssignmentTypeEnum(str, Enum):
    REVENUE = "revenue"
    EXPENSE = "expense"
    CHECKOUT = "checkout"
    PAYOUT = "payout"


class PayoutTypeEnum(str, Enum):
    GENERAL_PAYMENT = "general_payment"
    CLIENT_REFUND = "client_refund"


# --- Checkout sessions ---
class CheckoutSessionCreate(BaseModel):
    amount: float = Field(..., gt=0)
    currency: str = "XOF"
    success_url: HttpUrl
    error_url: HttpUrl
    client_reference: Optional[constr(max_length=255)] = None
    restrict_payer_mobile: Optional[str] = None
    aggregated_merchant_id: Optional[str] = None
    description: Optional[str] = None
    project_id: Optional[uuid.UUID] = None
    client_id: Optional[uuid.UUID] = None


class CheckoutSessionResult(BaseModel):
    checkout: Dict[str, Any]
    assignment_id: uuid.UUID


# --- Payouts ---
class PayoutCreate(BaseModel):
    receive_amount: float = Field(..., gt=0)
    currency: str = "XOF"
    mobile: constr(strip_whitespace=True, min_length=1)
    name: Optional[str] = None
    national_id: Optional[str] = None
    payment_reason: Optional[constr(max_length=40)] = None
    client_reference: Optional[constr(max_length=255)] = None
    aggregated_merchant_id: Optional[str] = None
    type: PayoutTypeEnum = PayoutTypeEnum.GENERAL_PAYMENT
    project_id: Optional[uuid.UUID] = None
    client_id: Optional[uuid.UUID] = None


class PayoutResult(BaseModel):
    payout: Dict[str, Any]
    expense_id: uuid.UUID
    assignment_id: uuid.UUID


class PayoutBatchCreate(BaseModel):
    payouts: List[PayoutCreate] = Field(..., min_length=1, max_length=100)


# --- Transaction assignments ---
class TransactionAssign(BaseModel):
    type: WaveAssignmentTypeEnum
    description: Optional[str] = None
    notes: Optional[str] = None
    category: Optional[str] = None
    project_id: Optional[uuid.UUID] = None
    client_id: Optional[uuid.UUID] = None
    wave_transaction_data: Dict[str, Any]


class WaveTransactionAssignment(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    transaction_id: str
    type: WaveAssignmentTypeEnum
    description: Optional[str] = None
    amount: float
    fee: float
    currency: str
    timestamp: Optional[datetime] = None
    counterparty_name: Optional[str] = None
    counterparty_mobile: Optional[str] = None
    notes: Optional[str] = None
    invoice_id: Optional[uuid.UUID] = None
    expense_id: Optional[uuid.UUID] = None
    project_id: Optional[uuid.UUID] = None
    client_id: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TransactionList(BaseModel):
    date: str
    items: List[Dict[str, Any]]
    page_info: Optional[Dict[str, Any]] = None
