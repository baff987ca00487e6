from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

ROLE_NAME_PATTERN = r"^[a-z][a-z0-9_]*$"
COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class PermissionResponse(BaseModel):
    id: str
    name: str
    resource: str
    action: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=50, pattern=ROLE_NAME_PATTERN)
    display_name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    color: str = Field("#3B82F6", pattern=COLOR_PATTERN)


class RoleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50, pattern=ROLE_NAME_PATTERN)
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    color: Optional[str] = Field(None, pattern=COLOR_PATTERN)


class RoleResponse(BaseModel):
    id: str
    name: str
    display_name: str
    description: Optional[str] = None
    color: str = "#3B82F6"
    is_system_role: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RoleWithPermissionsResponse(RoleResponse):
    permissions: List[PermissionResponse]


class RolePermissionsUpdate(BaseModel):
    permission_ids: List[str]


class RolePermissionsUpdateResponse(BaseModel):
    role_id: str
    assigned_count: int
    permissions: List[PermissionResponse]
    message: str
