from fastapi import APIRouter, Depends, HTTPException, status
from app.database.supabase_client import get_supabase
from app.modules.users.schemas import (
    UserUpdate, UserResponse, UserRoleUpdate, UserStatusUpdate,
    UserModuleAccessUpdate, UserModuleAccessResponse
)
from app.modules.users.service import UserService, UserPermissionService
from app.modules.access.schemas import UserModulesResponse
from app.modules.access.service import AccessService
from app.core.dependencies import require_permission, is_admin_master, check_same_company, get_access_service
from app.config.settings import settings
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)


def get_user_permission_service(supabase: Client = Depends(get_supabase)) -> UserPermissionService:
    return UserPermissionService(supabase)


@router.get("", response_model=List[UserResponse])
async def list_users(
    active: Optional[bool] = None,
    limit: int = 50,
    offset: int = 0,
    user_data: Dict = Depends(require_permission("usuarios:view")),
    service: UserService = Depends(get_user_service)
):
    """List profiles of the caller's company (every company for admin_master)"""
    company_id = None if is_admin_master(user_data) else user_data.get("company_id")
    if company_id is None and not is_admin_master(user_data):
        return []
    return service.list_users(company_id=company_id, active=active, limit=limit, offset=offset)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    user_data: Dict = Depends(require_permission("usuarios:view")),
    service: UserService = Depends(get_user_service)
):
    target = service.get_user_by_id(user_id)
    check_same_company(user_data, target.model_dump())
    return target


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    user_data_body: UserUpdate,
    user_data: Dict = Depends(require_permission("usuarios:update")),
    service: UserService = Depends(get_user_service)
):
    target = service.get_user_by_id(user_id)
    check_same_company(user_data, target.model_dump())
    return service.update_user(user_id, user_data_body)


@router.patch("/{user_id}/role", response_model=UserResponse)
async def change_user_role(
    user_id: str,
    role_update: UserRoleUpdate,
    user_data: Dict = Depends(require_permission("usuarios:update")),
    service: UserService = Depends(get_user_service)
):
    """Assign a role; only admin_master can grant admin_master"""
    target = service.get_user_by_id(user_id)
    check_same_company(user_data, target.model_dump())
    if target.id == user_data.get("id"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot change your own role")
    if settings.admin_master_role in (role_update.role, target.role) and not is_admin_master(user_data):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only admin_master can manage admin_master users")
    return service.change_role(user_id, role_update.role)


@router.patch("/{user_id}/status", response_model=UserResponse)
async def set_user_status(
    user_id: str,
    status_update: UserStatusUpdate,
    user_data: Dict = Depends(require_permission("usuarios:update")),
    service: UserService = Depends(get_user_service)
):
    """Activate or deactivate a profile"""
    target = service.get_user_by_id(user_id)
    check_same_company(user_data, target.model_dump())
    if target.id == user_data.get("id") and not status_update.active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot deactivate yourself")
    return service.set_active(user_id, status_update.active)


def _check_access_admin(user_data: Dict, target: UserResponse) -> None:
    check_same_company(user_data, target.model_dump())
    if target.role == settings.admin_master_role and not is_admin_master(user_data):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only admin_master can manage admin_master users")


@router.get("/{user_id}/modules", response_model=UserModulesResponse)
async def get_user_module_access(
    user_id: str,
    user_data: Dict = Depends(require_permission("usuarios:view")),
    service: UserService = Depends(get_user_service),
    access_service: AccessService = Depends(get_access_service)
):
    """Every active module with the profile's effective access and whether it is customised"""
    target = service.get_user_by_id(user_id)
    check_same_company(user_data, target.model_dump())
    return UserModulesResponse(modules=access_service.module_rows(target.model_dump()))


@router.put("/{user_id}/modules/{module_id}", response_model=UserModuleAccessResponse)
async def set_user_module_access(
    user_id: str,
    module_id: str,
    access_update: UserModuleAccessUpdate,
    user_data: Dict = Depends(require_permission("usuarios:update")),
    service: UserService = Depends(get_user_service),
    permission_service: UserPermissionService = Depends(get_user_permission_service)
):
    """Override the role default for one module"""
    target = service.get_user_by_id(user_id)
    _check_access_admin(user_data, target)
    return permission_service.set_module_access(
        user_id, module_id, access_update.can_access, granted_by=user_data.get("id")
    )


@router.delete("/{user_id}/modules/{module_id}", status_code=204)
async def reset_user_module_access(
    user_id: str,
    module_id: str,
    user_data: Dict = Depends(require_permission("usuarios:update")),
    service: UserService = Depends(get_user_service),
    permission_service: UserPermissionService = Depends(get_user_permission_service)
):
    """Back to the role default for one module"""
    target = service.get_user_by_id(user_id)
    _check_access_admin(user_data, target)
    permission_service.reset_module_access(user_id, module_id)
    return None
