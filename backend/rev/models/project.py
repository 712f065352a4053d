import uuid
from sqlalchemy import Column, String, Text, ForeignKey, Float, DateTime, Uuid, Enum as DBEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from rev.db.base_class import Base
from rev.schemas.project import ProjectTypeEnum, ProjectStatusEnum
from .tag import project_tags


class Project(Base):
    # __tablename__ will be 'projects'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    type = Column(DBEnum(ProjectTypeEnum, name="project_type_enum", native_enum=False),
                  nullable=False, default=ProjectTypeEnum.CLIENT)
    status = Column(DBEnum(ProjectStatusEnum, name="project_status_enum", native_enum=False),
                    nullable=False, default=ProjectStatusEnum.IN_PROGRESS, index=True)
    amount = Column(Float, nullable=False, default=0.0) # Budget
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    logo = Column(String(1024), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(Uuid(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)

    owner = relationship("User", back_populates="projects")
    client = relationship("Client", back_populates="projects")
    tasks = relationship("Task", back_populates="project", cascade="all, delete-orphan")
    tags = relationship("Tag", secondary=project_tags, lazy="selectin")

    def __repr__(self):
        return f"<Project(id={self.id}, name='{self.name}')>"
