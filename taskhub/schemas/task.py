# taskhub/schemas/task.py
from pydantic import BaseModel, Field, field_validator, model_validator, computed_field
from typing import List, Optional
from datetime import date, datetime
from uuid import uuid4

from taskhub.models.task import TaskStatus, TaskPriority
from taskhub.schemas.user import UserSummary


def _unique_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    seen = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


# Day entries and sub-tasks live inside the task row; they have no table of their own

class SubTask(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    description: str = Field(..., min_length=1)
    hours_spent: float = Field(0, ge=0)
    remarks: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None


class Day(BaseModel):
    date: date
    sub_tasks: List[SubTask] = []


class SubTaskCreate(BaseModel):
    date: date
    description: str = Field(..., min_length=1)
    hours_spent: float = Field(0, ge=0)
    remarks: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING


class SubTaskUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1)
    hours_spent: Optional[float] = Field(None, ge=0)
    remarks: Optional[str] = None
    status: Optional[TaskStatus] = None


class TaskBase(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    start_date: date
    end_date: date
    priority: TaskPriority = TaskPriority.MEDIUM
    tags: List[str] = []

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v):
        return _unique_tags(v)


class TaskCreate(TaskBase):
    assigned_to: int
    company_id: Optional[int] = None  # defaults to the caller's company

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    priority: Optional[TaskPriority] = None
    tags: Optional[List[str]] = None
    assigned_to: Optional[int] = None

    # Explicit overrides of the derived fields
    status: Optional[TaskStatus] = None
    progress: Optional[int] = Field(None, ge=0, le=100)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v):
        return _unique_tags(v)

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TaskOut(BaseModel):
    id: int
    title: str
    description: Optional[str]
    company_id: int
    priority: TaskPriority
    status: TaskStatus
    progress: int
    tags: List[str]
    start_date: date
    end_date: date
    days: List[Day] = []

    # Who assigned it…
    assigned_by: int
    assigner: UserSummary
    # …and who it's assigned to
    assigned_to: int
    assignee: UserSummary

    created_at: datetime
    updated_at: Optional[datetime]
    version: int

    model_config = {
        "from_attributes": True
    }

    @computed_field
    @property
    def total_hours(self) -> float:
        return round(sum(s.hours_spent for day in self.days for s in day.sub_tasks), 2)
