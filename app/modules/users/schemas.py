from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    phone: Optional[str] = None
    avatar_url: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    user_id: str
    name: Optional[str] = None
    email: str
    role: str
    company_id: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserRoleUpdate(BaseModel):
    role: str


class UserStatusUpdate(BaseModel):
    active: bool


class UserModuleAccessUpdate(BaseModel):
    can_access: bool


class UserModuleAccessResponse(BaseModel):
    id: str
    user_id: str
    module_id: str
    can_access: bool
    granted_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
