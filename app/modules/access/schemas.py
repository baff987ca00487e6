from enum import Enum
from pydantic import BaseModel
from typing import List, Optional


class NavigationIcon(str, Enum):
    """Icon identifiers the UI knows how to render"""
    LAYOUT_DASHBOARD = "LayoutDashboard"
    HOME = "Home"
    FOLDER_OPEN = "FolderOpen"
    USERS = "Users"
    BUILDING = "Building"
    USER_CHECK = "UserCheck"
    FILE_TEXT = "FileText"
    CLIPBOARD_LIST = "ClipboardList"
    WRENCH = "Wrench"
    BAR_CHART = "BarChart"
    CALENDAR = "Calendar"
    HELP_CIRCLE = "HelpCircle"
    PACKAGE = "Package"
    TRUCK = "Truck"
    SHIELD = "Shield"
    SETTINGS = "Settings"


DEFAULT_ICON = NavigationIcon.LAYOUT_DASHBOARD


class NavigationItem(BaseModel):
    title: str
    url: str
    icon: NavigationIcon


class AllowedModule(BaseModel):
    """One row of get_user_allowed_modules()"""
    module_id: Optional[str] = None
    module_name: str
    module_title: str
    module_url: str
    module_icon: Optional[str] = None
    has_custom_permission: bool = False
    is_allowed: bool = False


class UserModulesResponse(BaseModel):
    modules: List[AllowedModule]


class NavigationResponse(BaseModel):
    role: str
    items: List[NavigationItem]


class GuardState(str, Enum):
    PENDING = "pending"
    GRANTED = "granted"
    DENIED = "denied"


class AccessCheckRequest(BaseModel):
    route: str
    allowed_roles: List[str] = []
    fallback: Optional[str] = None


class AccessDecision(BaseModel):
    state: GuardState
    route: str
    role: Optional[str] = None
    fallback: Optional[str] = None
    message: Optional[str] = None


class PermissionCheckResponse(BaseModel):
    module_id: str
    action: str
    allowed: bool
