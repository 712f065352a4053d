import uuid
from sqlalchemy import Column, String, Text, ForeignKey, Float, DateTime, Uuid, JSON, UniqueConstraint, Enum as DBEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from rev.db.base_class import Base
from rev.schemas.wave import WaveAssignmentTypeEnum


class WaveTransactionAssignment(Base):
    # __tablename__ will be 'wave_transaction_assignments'
    # One local record per Wave transaction and user
    __table_args__ = (UniqueConstraint("user_id", "transaction_id", name="uq_wave_assignment_user_transaction"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    transaction_id = Column(String(255), nullable=False, index=True)
    type = Column(DBEnum(WaveAssignmentTypeEnum, name="wave_assignment_type_enum", native_enum=False,
                         values_callable=lambda enum: [member.value for member in enum]),
                  nullable=False)
    description = Column(Text, nullable=True)
    amount = Column(Float, nullable=False, default=0.0)
    fee = Column(Float, nullable=False, default=0.0)
    currency = Column(String(3), nullable=False, default="XOF")
    timestamp = Column(DateTime(timezone=True), nullable=True)
    counterparty_name = Column(String(255), nullable=True)
    counterparty_mobile = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    wave_data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    invoice_id = Column(Uuid(as_uuid=True), ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True)
    expense_id = Column(Uuid(as_uuid=True), ForeignKey("expenses.id", ondelete="SET NULL"), nullable=True)
    project_id = Column(Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="SET NULL"), nullable=True)
    client_id = Column(Uuid(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True)

    owner = relationship("User", back_populates="wave_assignments")

    def __repr__(self):
        return f"<WaveTransactionAssignment(transaction_id='{self.transaction_id}', type={self.type})>"
