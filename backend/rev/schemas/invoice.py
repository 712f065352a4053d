from pydantic import BaseModel, EmailStr, Field, constr, field_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum
import uuid

# --- Enums for Invoice ---
class InvoiceTypeEnum(str, Enum):
    PROFORMA = "PROFORMA"
    INVOICE = "INVOICE"

class InvoiceStatusEnum(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


# --- InvoiceItem Schemas ---
class InvoiceItemBase(BaseModel):
    description: constr(strip_whitespace=True, min_length=1)
    quantity: float = Field(default=1.0, gt=0)
    unit_price: float = Field(..., ge=0)

class InvoiceItemCreate(InvoiceItemBase):
    pass

class InvoiceItem(InvoiceItemBase): # Response model for InvoiceItem
    id: uuid.UUID
    invoice_id: uuid.UUID
    total: float

    class Config:
        from_attributes = True


# --- Invoice Schemas ---
class InvoiceBase(BaseModel):
    type: InvoiceTypeEnum = InvoiceTypeEnum.INVOICE
    amount: float = Field(default=0.0, ge=0)
    currency: str = Field(default="XOF", min_length=3, max_length=3)
    due_date: Optional[datetime] = None
    notes: Optional[str] = None
    project_id: Optional[uuid.UUID] = None
    client_id: Optional[uuid.UUID] = None
    client_name: Optional[str] = None
    client_email: Optional[EmailStr] = None
    client_address: Optional[str] = None
    client_phone: Optional[str] = None

    @field_validator("client_email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        return v or None

class InvoiceCreate(InvoiceBase):
    # When items are given the amount is their sum
    items: List[InvoiceItemCreate] = []

class InvoiceUpdate(BaseModel):
    amount: Optional[float] = Field(default=None, ge=0)
    status: Optional[InvoiceStatusEnum] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    due_date: Optional[datetime] = None
    notes: Optional[str] = None
    client_name: Optional[str] = None
    client_email: Optional[EmailStr] = None
    client_address: Optional[str] = None
    client_phone: Optional[str] = None
    items: Optional[List[InvoiceItemCreate]] = None

class Invoice(InvoiceBase): # Full invoice response model
    id: uuid.UUID
    invoice_number: str
    status: InvoiceStatusEnum
    paid_date: Optional[datetime] = None
    payment_link: Optional[str] = None
    wave_checkout_id: Optional[str] = None
    parent_proforma_id: Optional[uuid.UUID] = None
    user_id: uuid.UUID
    items: List[InvoiceItem] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class InvoiceSummary(BaseModel): # For lists
    id: uuid.UUID
    invoice_number: str
    type: InvoiceTypeEnum
    status: InvoiceStatusEnum
    amount: float
    currency: str
    client_name: Optional[str] = None
    project_id: Optional[uuid.UUID] = None
    due_date: Optional[datetime] = None
    paid_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class InvoiceConvert(BaseModel):
    mark_as_paid: bool = False

class InvoiceSendResult(BaseModel):
    sent: bool
    recipient: str

class PaymentLinkOut(BaseModel):
    invoice_id: uuid.UUID
    payment_link: str
    wave_checkout_id: str

# --- Partial conversion of a proforma ---
class PartialConvertRequest(BaseModel):
    items: List[InvoiceItemCreate] = Field(..., min_length=1)
    client_name: Optional[str] = None
    client_email: Optional[EmailStr] = None
    client_address: Optional[str] = None
    client_phone: Optional[str] = None
    due_date: Optional[datetime] = None
    notes: Optional[str] = None
    mark_as_paid: bool = False
    paid_date: Optional[datetime] = None

    @field_validator("client_email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        return v or None

class ConversionStatus(BaseModel):
    proforma_id: uuid.UUID
    proforma_number: str
    amount: float
    total_invoiced: float
    remaining_amount: float
    is_fully_converted: bool
    invoices: List[InvoiceSummary] = []

class PartialConversionResult(ConversionStatus):
    invoice: Invoice

# --- Advance payments ---
class AdvancePaymentCreate(BaseModel):
    project_id: uuid.UUID
    amount: float = Field(..., gt=0)
    description: Optional[str] = None
    client_email: Optional[EmailStr] = None
    generate_payment_link: bool = False

    @field_validator("client_email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        return v or None

class AdvancePaymentResult(BaseModel):
    invoice: Invoice
    payment_link: Optional[str] = None
    message: str

# --- Public (payer-facing) views ---
class PublicInvoice(BaseModel):
    id: uuid.UUID
    invoice_number: str
    type: InvoiceTypeEnum
    status: InvoiceStatusEnum
    amount: float
    currency: str
    due_date: Optional[datetime] = None
    paid_date: Optional[datetime] = None
    client_name: Optional[str] = None
    project_name: Optional[str] = None
    payment_link: Optional[str] = None
    created_at: Optional[datetime] = None

class PublicMarkPaid(BaseModel):
    wave_checkout_id: str
    transaction_id: Optional[str] = None

class PublicMarkPaidResult(BaseModel):
    status: str
    invoice: PublicInvoice
