from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class RoleCount(BaseModel):
    role: str
    count: int


class RecentTask(BaseModel):
    id: int
    title: str
    status: str
    progress: int
    assigned_to: Optional[str] = None
    assigned_by: Optional[str] = None
    created_at: datetime


class CompanyStats(BaseModel):
    total_users: int
    active_users: int
    total_tasks: int
    completed_tasks: int
    pending_tasks: int
    in_progress_tasks: int
    delayed_tasks: int
    completion_rate: int
    user_role_distribution: List[RoleCount]
    recent_tasks: List[RecentTask]
