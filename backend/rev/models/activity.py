import uuid
from sqlalchemy import Column, Text, ForeignKey, DateTime, Uuid, JSON, Enum as DBEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from rev.db.base_class import Base
from rev.schemas.activity import ActivityTypeEnum


class Activity(Base):
    # __tablename__ will be 'activities'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    type = Column(DBEnum(ActivityTypeEnum, name="activity_type_enum", native_enum=False), nullable=False, index=True)
    description = Column(Text, nullable=False)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    task_id = Column(Uuid(as_uuid=True), ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    client_id = Column(Uuid(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True)
    invoice_id = Column(Uuid(as_uuid=True), ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True)

    owner = relationship("User", back_populates="activities")

    def __repr__(self):
        return f"<Activity(id={self.id}, type={self.type})>"
