import uuid
from sqlalchemy import Column, String, Text, ForeignKey, DateTime, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from rev.db.base_class import Base
from .tag import client_tags


class Client(Base):
    # __tablename__ will be 'clients'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    company = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    photo = Column(String(1024), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    owner = relationship("User", back_populates="clients")
    projects = relationship("Project", back_populates="client")
    tags = relationship("Tag", secondary=client_tags, lazy="selectin")

    def __repr__(self):
        return f"<Client(id={self.id}, name='{self.name}')>"
