import uuid
from sqlalchemy import Column, String, Boolean, Integer, Text, DateTime, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from rev.db.base_class import Base


class User(Base):
    # __tablename__ will be 'users'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    full_name = Column(String(255), index=True, nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean(), default=True)

    # Profile
    company_name = Column(String(255), nullable=True)
    company_logo = Column(String(1024), nullable=True)
    address = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    currency = Column(String(3), nullable=False, default="XOF")

    # Outgoing email
    smtp_host = Column(String(255), nullable=True)
    smtp_port = Column(Integer, nullable=True)
    smtp_user = Column(String(255), nullable=True)
    smtp_password = Column(String(255), nullable=True)
    smtp_from = Column(String(255), nullable=True)
    email_notifications = Column(Boolean(), nullable=False, default=True)

    # Wave
    wave_api_key = Column(String(512), nullable=True)
    wave_webhook_secret = Column(String(512), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    clients = relationship("Client", back_populates="owner", cascade="all, delete-orphan")
    projects = relationship("Project", back_populates="owner", cascade="all, delete-orphan")
    tasks = relationship("Task", back_populates="owner", cascade="all, delete-orphan")
    invoices = relationship("Invoice", back_populates="owner", cascade="all, delete-orphan")
    expenses = relationship("Expense", back_populates="owner", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="owner", cascade="all, delete-orphan")
    activities = relationship("Activity", back_populates="owner", cascade="all, delete-orphan")
    tags = relationship("Tag", back_populates="owner", cascade="all, delete-orphan")
    time_entries = relationship("TimeEntry", back_populates="owner", cascade="all, delete-orphan")
    files = relationship("File", back_populates="owner", cascade="all, delete-orphan")
    wave_assignments = relationship("WaveTransactionAssignment", back_populates="owner", cascade="all, delete-orphan")
    company_settings = relationship("CompanySettings", back_populates="owner", uselist=False, cascade="all, delete-orphan")

    @property
    def wave_configured(self) -> bool:
        return bool(self.wave_api_key)

    @property
    def wave_webhook_configured(self) -> bool:
        return bool(self.wave_webhook_secret)

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_port and self.smtp_user and self.smtp_password)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
