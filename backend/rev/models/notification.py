import uuid
from sqlalchemy import Column, String, Text, ForeignKey, Boolean, DateTime, Uuid, JSON, Enum as DBEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from rev.db.base_class import Base
from rev.schemas.notification import NotificationTypeEnum


class Notification(Base):
    # __tablename__ will be 'notifications'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(DBEnum(NotificationTypeEnum, name="notification_type_enum", native_enum=False),
                  nullable=False, default=NotificationTypeEnum.INFO)
    is_read = Column(Boolean(), nullable=False, default=False, index=True)
    related_type = Column(String(50), nullable=True)
    related_id = Column(String(255), nullable=True)
    action_url = Column(String(1024), nullable=True)
    details = Column(JSON, nullable=True) # 'metadata' is reserved by the declarative base
    email_sent = Column(Boolean(), nullable=False, default=False)
    email_sent_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    owner = relationship("User", back_populates="notifications")

    def __repr__(self):
        return f"<Notification(id={self.id}, type={self.type})>"
