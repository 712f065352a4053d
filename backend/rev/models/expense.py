import uuid
from sqlalchemy import Column, String, Text, ForeignKey, Float, Integer, Boolean, DateTime, Uuid, Enum as DBEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from rev.db.base_class import Base
from rev.schemas.expense import ExpenseTypeEnum, SubscriptionPeriodEnum


class Expense(Base):
    # __tablename__ will be 'expenses'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    description = Column(Text, nullable=False)
    amount = Column(Float, nullable=False)
    category = Column(String(100), nullable=True, index=True)
    date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    notes = Column(Text, nullable=True)
    type = Column(DBEnum(ExpenseTypeEnum, name="expense_type_enum", native_enum=False),
                  nullable=False, default=ExpenseTypeEnum.GENERAL)

    # Recurring subscriptions
    is_subscription = Column(Boolean(), nullable=False, default=False)
    subscription_period = Column(DBEnum(SubscriptionPeriodEnum, name="subscription_period_enum", native_enum=False),
                                 nullable=True)
    next_renewal_date = Column(DateTime(timezone=True), nullable=True)
    reminder_days = Column(Integer, nullable=False, default=7)
    is_active = Column(Boolean(), nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)

    owner = relationship("User", back_populates="expenses")
    project = relationship("Project")

    def __repr__(self):
        return f"<Expense(id={self.id}, amount={self.amount})>"
