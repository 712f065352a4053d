import uuid
from sqlalchemy import Column, String, Text, ForeignKey, DateTime, Uuid, Enum as DBEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from rev.db.base_class import Base
from rev.schemas.task import TaskStatusEnum, TaskPriorityEnum
from .tag import task_tags


class Task(Base):
    # __tablename__ will be 'tasks'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(DBEnum(TaskStatusEnum, name="task_status_enum", native_enum=False),
                    nullable=False, default=TaskStatusEnum.TODO, index=True)
    priority = Column(DBEnum(TaskPriorityEnum, name="task_priority_enum", native_enum=False),
                      nullable=False, default=TaskPriorityEnum.MEDIUM)
    due_date = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=True, index=True)
    parent_id = Column(Uuid(as_uuid=True), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True, index=True)

    owner = relationship("User", back_populates="tasks")
    project = relationship("Project", back_populates="tasks")
    subtasks = relationship("Task", cascade="all, delete-orphan")
    tags = relationship("Tag", secondary=task_tags, lazy="selectin")

    def __repr__(self):
        return f"<Task(id={self.id}, title='{self.title}')>"
