from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship
from taskhub.database import Base
import enum
from datetime import datetime


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    DELAYED = "delayed"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)

    # Relationships
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=False)
    assigned_by = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Task properties
    priority = Column(String, default=TaskPriority.MEDIUM.value, nullable=False)
    status = Column(String, default=TaskStatus.PENDING.value, nullable=False, index=True)
    progress = Column(Integer, default=0, nullable=False)
    tags = Column(JSON, default=list, nullable=False)

    # Day entries with their sub-tasks, stored inside the task row
    days = Column(JSON, default=list, nullable=False)

    # Dates (date only, no time component)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    # System dates
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Bumped on every write; a stale write raises StaleDataError
    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    company = relationship("Company", back_populates="tasks")
    assignee = relationship("User", foreign_keys=[assigned_to], back_populates="assigned_tasks")
    assigner = relationship("User", foreign_keys=[assigned_by], back_populates="created_tasks")
