from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.roles.schemas import (
    PermissionResponse,
    RoleCreate, RoleUpdate, RoleResponse, RoleWithPermissionsResponse,
    RolePermissionsUpdate, RolePermissionsUpdateResponse
)
from app.modules.roles.service import RoleService, PermissionService
from app.core.dependencies import require_permission
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/roles", tags=["roles"])


def get_role_service(supabase: Client = Depends(get_supabase)) -> RoleService:
    return RoleService(supabase)


def get_permission_service(supabase: Client = Depends(get_supabase)) -> PermissionService:
    return PermissionService(supabase)


# Permission catalog endpoints (read-only, seeded)
@router.get("/permissions", response_model=List[PermissionResponse])
async def list_permissions(
    resource: Optional[str] = None,
    user_data: Dict = Depends(require_permission("roles:view")),
    service: PermissionService = Depends(get_permission_service)
):
    """List the permission catalog"""
    return service.list_permissions(resource=resource)


@router.get("/permissions/{permission_id}", response_model=PermissionResponse)
async def get_permission(
    permission_id: str,
    user_data: Dict = Depends(require_permission("roles:view")),
    service: PermissionService = Depends(get_permission_service)
):
    return service.get_permission_by_id(permission_id)


# Role endpoints
@router.post("", response_model=RoleResponse, status_code=201)
async def create_role(
    role_data: RoleCreate,
    user_data: Dict = Depends(require_permission("roles:create")),
    service: RoleService = Depends(get_role_service)
):
    """Create a new role"""
    return service.create_role(role_data)


@router.get("", response_model=List[RoleResponse])
async def list_roles(
    limit: int = 100,
    offset: int = 0,
    user_data: Dict = Depends(require_permission("roles:view")),
    service: RoleService = Depends(get_role_service)
):
    return service.list_roles(limit=limit, offset=offset)


@router.get("/by-name/{name}", response_model=RoleResponse)
async def get_role_by_name(
    name: str,
    user_data: Dict = Depends(require_permission("roles:view")),
    service: RoleService = Depends(get_role_service)
):
    return service.get_role(name)


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    role_id: str,
    user_data: Dict = Depends(require_permission("roles:view")),
    service: RoleService = Depends(get_role_service)
):
    return service.get_role_by_id(role_id)


@router.get("/{role_id}/with-permissions", response_model=RoleWithPermissionsResponse)
async def get_role_with_permissions(
    role_id: str,
    user_data: Dict = Depends(require_permission("roles:view")),
    service: RoleService = Depends(get_role_service)
):
    """Get role with all granted permissions"""
    return service.get_role_with_permissions(role_id)


@router.put("/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: str,
    role_data: RoleUpdate,
    user_data: Dict = Depends(require_permission("roles:update")),
    service: RoleService = Depends(get_role_service)
):
    return service.update_role(role_id, role_data)


@router.delete("/{role_id}", status_code=204)
async def delete_role(
    role_id: str,
    user_data: Dict = Depends(require_permission("roles:delete")),
    service: RoleService = Depends(get_role_service)
):
    """Delete a custom role (system roles are protected)"""
    service.delete_role(role_id)
    return None


# Role-Permission association endpoints
@router.get("/{role_id}/permissions", response_model=List[PermissionResponse])
async def get_role_permissions(
    role_id: str,
    user_data: Dict = Depends(require_permission("roles:view")),
    service: RoleService = Depends(get_role_service)
):
    return service.get_role_permissions(role_id)


@router.put("/{role_id}/permissions", response_model=RolePermissionsUpdateResponse)
async def update_role_permissions(
    role_id: str,
    update: RolePermissionsUpdate,
    user_data: Dict = Depends(require_permission("roles:update")),
    service: RoleService = Depends(get_role_service)
):
    """Replace the role's permission checklist"""
    return service.update_role_permissions(role_id, update.permission_ids)
