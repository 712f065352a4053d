import uuid
from sqlalchemy import Column, String, Text, ForeignKey, Float, DateTime, Uuid, Enum as DBEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func # For server-side default timestamps

from rev.db.base_class import Base
from rev.schemas.invoice import InvoiceTypeEnum, InvoiceStatusEnum # Import enums for DB


class Invoice(Base):
    # __tablename__ will be 'invoices'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    invoice_number = Column(String(50), nullable=False, index=True)
    type = Column(DBEnum(InvoiceTypeEnum, name="invoice_type_enum", native_enum=False),
                  nullable=False, default=InvoiceTypeEnum.INVOICE)
    status = Column(DBEnum(InvoiceStatusEnum, name="invoice_status_enum", native_enum=False),
                    nullable=False, default=InvoiceStatusEnum.PENDING, index=True)
    amount = Column(Float, nullable=False, default=0.0)
    currency = Column(String(3), nullable=False, default="XOF")
    due_date = Column(DateTime(timezone=True), nullable=True)
    paid_date = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    # Client details are copied at creation so the document survives client edits
    client_name = Column(String(255), nullable=True)
    client_email = Column(String(255), nullable=True)
    client_address = Column(Text, nullable=True)
    client_phone = Column(String(50), nullable=True)

    payment_link = Column(String(1024), nullable=True)
    wave_checkout_id = Column(String(255), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Foreign Keys
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    client_id = Column(Uuid(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    # Set on invoices issued from a proforma
    parent_proforma_id = Column(Uuid(as_uuid=True), ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True, index=True)

    # Relationships
    owner = relationship("User", back_populates="invoices")
    project = relationship("Project")
    client = relationship("Client")

    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan", # If invoice is deleted, its items are deleted
        lazy="selectin" # Eagerly load line items when an invoice is fetched
    )

    def __repr__(self):
        return f"<Invoice(id={self.id}, invoice_number='{self.invoice_number}')>"


class InvoiceItem(Base):
    # __tablename__ will be 'invoice_items'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    description = Column(Text, nullable=False)
    quantity = Column(Float, nullable=False, default=1.0)
    unit_price = Column(Float, nullable=False)
    total = Column(Float, nullable=False, default=0.0) # quantity * unit_price

    invoice_id = Column(Uuid(as_uuid=True), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)

    invoice = relationship("Invoice", back_populates="items")

    def __repr__(self):
        return f"<InvoiceItem(id={self.id}, description='{self.description[:30]}...')>"
