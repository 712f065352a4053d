import uuid
from sqlalchemy import Column, String, Text, ForeignKey, DateTime, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from rev.db.base_class import Base


class CompanySettings(Base):
    __tablename__ = "company_settings"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    logo = Column(String(1024), nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True, default="Côte d'Ivoire")
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    website = Column(String(255), nullable=True)

    # Registration and banking
    rccm = Column(String(100), nullable=True)
    nif = Column(String(100), nullable=True)
    bank_name = Column(String(255), nullable=True)
    bank_account = Column(String(100), nullable=True)
    bank_iban = Column(String(50), nullable=True)
    bank_swift = Column(String(20), nullable=True)
    legal_form = Column(String(100), nullable=True)
    capital = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    owner = relationship("User", back_populates="company_settings")

    def __repr__(self):
        return f"<CompanySettings(user_id={self.user_id}, name='{self.name}')>"
