from .user import UserCreate, UserUpdate, UserOut, UserSummary
from .company import CompanyCreate, CompanyUpdate, CompanyOut, CompanyDetailedOut, CompanyMinimal, CompanyDropdown
from .task import TaskCreate, TaskUpdate, TaskOut, Day, SubTask, SubTaskCreate, SubTaskUpdate
from .stats import CompanyStats, RoleCount, RecentTask
