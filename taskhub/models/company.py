from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime

from taskhub.database import Base


class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)

    # users.company_id already points here; no FK back to avoid a cycle
    created_by = Column(Integer, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    total_users = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    creator = relationship(
        "User",
        primaryjoin="foreign(Company.created_by) == User.id",
        viewonly=True,
    )
    users = relationship("User", back_populates="company", foreign_keys="User.company_id")
    tasks = relationship("Task", back_populates="company", cascade="all, delete-orphan")
