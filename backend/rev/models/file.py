import uuid
from sqlalchemy import Column, String, Text, ForeignKey, BigInteger, DateTime, Uuid, Enum as DBEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from rev.db.base_class import Base
from rev.schemas.file import FileCategoryEnum
from .tag import file_tags


class File(Base):
    # __tablename__ will be 'files'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    filename = Column(String(255), nullable=False) # Stored name
    original_name = Column(String(255), nullable=False)
    url = Column(String(1024), nullable=False)
    path = Column(String(1024), nullable=False)
    size = Column(BigInteger, nullable=False)
    mime_type = Column(String(255), nullable=False)
    category = Column(DBEnum(FileCategoryEnum, name="file_category_enum", native_enum=False),
                      nullable=False, default=FileCategoryEnum.DOCUMENT, index=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    client_id = Column(Uuid(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)

    owner = relationship("User", back_populates="files")
    tags = relationship("Tag", secondary=file_tags, lazy="selectin")

    def __repr__(self):
        return f"<File(id={self.id}, original_name='{self.original_name}')>"
