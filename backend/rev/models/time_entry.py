import uuid
from sqlalchemy import Column, Text, ForeignKey, Integer, Boolean, DateTime, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from rev.db.base_class import Base


class TimeEntry(Base):
    # __tablename__ will be 'time_entries'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    description = Column(Text, nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=True)
    duration = Column(Integer, nullable=True) # whole minutes
    is_running = Column(Boolean(), nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    task_id = Column(Uuid(as_uuid=True), ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True, index=True)

    owner = relationship("User", back_populates="time_entries")

    def __repr__(self):
        return f"<TimeEntry(id={self.id}, running={self.is_running})>"
