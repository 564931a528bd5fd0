from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional, Literal
from datetime import datetime

from taskhub.schemas.user import UserSummary

ReturnType = Literal["full", "detailed", "minimal", "dropdown"]


class CompanyBase(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class CompanyCreate(CompanyBase):
    pass


class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: Optional[bool] = None


class CompanyOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    created_by: Optional[int] = None
    creator: Optional[UserSummary] = None
    is_active: bool
    total_users: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class CompanyUserBrief(BaseModel):
    id: int
    name: str
    email: str
    role: str
    is_active: bool

    model_config = {
        "from_attributes": True
    }


class CompanyTaskBrief(BaseModel):
    id: int
    title: str
    status: str
    priority: str

    model_config = {
        "from_attributes": True
    }


class CompanyDetailedOut(CompanyOut):
    users: List[CompanyUserBrief] = []
    tasks: List[CompanyTaskBrief] = []


class CompanyMinimal(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool
    user_count: int
    created_by: str


class CompanyDropdown(BaseModel):
    label: str
    value: int
    is_active: bool
