from enum import Enum
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from app.config.permissions_config import MODULE_ACTIONS
from app.modules.access.schemas import NavigationIcon

SEMVER_PATTERN = r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)(-[0-9A-Za-z-]+(\.[0-9A-Za-z-]+)*)?$"
SLUG_PATTERN = r"^[a-z0-9]+(-[a-z0-9]+)*$"


class ModuleStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class ModuleVisibility(str, Enum):
    INTERNAL = "internal"
    PUBLIC = "public"


def _check_route(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not value.startswith("/") or " " in value:
        raise ValueError("url must be an absolute route such as /equipamentos")
    return value.rstrip("/") or "/"


class ModuleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    category: Optional[str] = None
    status: ModuleStatus = ModuleStatus.INACTIVE
    visibility: ModuleVisibility = ModuleVisibility.INTERNAL
    is_core: bool = False
    url: Optional[str] = None
    icon: Optional[NavigationIcon] = None
    resource: Optional[str] = None

    @field_validator("url")
    @classmethod
    def url_must_be_route(cls, v: Optional[str]) -> Optional[str]:
        return _check_route(v)


class ModuleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    category: Optional[str] = None
    status: Optional[ModuleStatus] = None
    visibility: Optional[ModuleVisibility] = None
    is_core: Optional[bool] = None
    url: Optional[str] = None
    icon: Optional[NavigationIcon] = None
    resource: Optional[str] = None

    @field_validator("url")
    @classmethod
    def url_must_be_route(cls, v: Optional[str]) -> Optional[str]:
        return _check_route(v)


class ModuleResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    category: Optional[str] = None
    status: ModuleStatus
    visibility: ModuleVisibility = ModuleVisibility.INTERNAL
    is_core: bool = False
    url: Optional[str] = None
    icon: Optional[str] = None  # stored as text; may predate the icon enum
    resource: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def resource_key(self) -> str:
        """Permission-catalog resource this module maps to"""
        return self.resource or self.slug


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ModuleListResponse(BaseModel):
    data: List[ModuleResponse]
    pagination: Pagination


class ModuleVersionCreate(BaseModel):
    semver: str = Field(..., pattern=SEMVER_PATTERN)
    changelog: Optional[str] = None


class ModuleVersionResponse(BaseModel):
    id: str
    module_id: str
    semver: str
    changelog: Optional[str] = None
    is_stable: bool = False
    created_at: Optional[datetime] = None


class ModuleDependencyCreate(BaseModel):
    depends_on_module_id: str


class ModuleDependencyResponse(BaseModel):
    id: str
    module_id: str
    depends_on_module_id: str
    created_at: Optional[datetime] = None


class ModulePermissionEntry(BaseModel):
    role: str
    action: str
    allowed: bool = False

    @field_validator("action")
    @classmethod
    def action_must_be_known(cls, v: str) -> str:
        if v not in MODULE_ACTIONS:
            raise ValueError(f"action must be one of {MODULE_ACTIONS}")
        return v


class ModulePermissionMatrix(BaseModel):
    permissions: List[ModulePermissionEntry]


class ModulePermissionMatrixResponse(BaseModel):
    module_id: str
    roles: List[str]
    actions: List[str]
    permissions: List[ModulePermissionEntry]
