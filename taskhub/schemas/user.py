from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal
from datetime import datetime

Role = Literal["admin", "manager", "staff"]


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    role: Role = "staff"
    company_id: Optional[int] = None
    is_active: bool = True


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    company_id: Optional[int] = None
    is_active: Optional[bool] = None

    model_config = {
        "from_attributes": True
    }


class UserSummary(BaseModel):
    id: int
    name: str
    email: str

    model_config = {
        "from_attributes": True
    }


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: str
    company_id: Optional[int] = None
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }
