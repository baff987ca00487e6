from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.module_registry.schemas import (
    ModuleCreate, ModuleUpdate, ModuleResponse, ModuleListResponse, ModuleStatus,
    ModuleVersionCreate, ModuleVersionResponse,
    ModuleDependencyCreate, ModuleDependencyResponse,
    ModulePermissionMatrix, ModulePermissionMatrixResponse
)
from app.modules.module_registry.service import (
    ModuleService, ModuleVersionService, ModuleDependencyService, ModulePermissionService
)
from app.core.dependencies import require_admin_master
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/modules", tags=["modules"])


def get_module_service(supabase: Client = Depends(get_supabase)) -> ModuleService:
    return ModuleService(supabase)


def get_version_service(supabase: Client = Depends(get_supabase)) -> ModuleVersionService:
    return ModuleVersionService(supabase)


def get_dependency_service(supabase: Client = Depends(get_supabase)) -> ModuleDependencyService:
    return ModuleDependencyService(supabase)


def get_module_permission_service(supabase: Client = Depends(get_supabase)) -> ModulePermissionService:
    return ModulePermissionService(supabase)


# Module endpoints
@router.post("", response_model=ModuleResponse, status_code=201)
async def create_module(
    module_data: ModuleCreate,
    user_data: Dict = Depends(require_admin_master),
    service: ModuleService = Depends(get_module_service)
):
    """Create a module (slug derived from name when omitted)"""
    return service.create_module(module_data, user_id=user_data["user_id"])


@router.get("", response_model=ModuleListResponse)
async def list_modules(
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    status: Optional[ModuleStatus] = None,
    category: Optional[str] = None,
    user_data: Dict = Depends(require_admin_master),
    service: ModuleService = Depends(get_module_service)
):
    return service.list_modules(page=page, limit=limit, search=search, status=status, category=category)


@router.get("/{module_id}", response_model=ModuleResponse)
async def get_module(
    module_id: str,
    user_data: Dict = Depends(require_admin_master),
    service: ModuleService = Depends(get_module_service)
):
    return service.get_module(module_id)


@router.patch("/{module_id}", response_model=ModuleResponse)
async def update_module(
    module_id: str,
    module_data: ModuleUpdate,
    user_data: Dict = Depends(require_admin_master),
    service: ModuleService = Depends(get_module_service)
):
    return service.update_module(module_id, module_data, user_id=user_data["user_id"])


@router.post("/{module_id}/activate", response_model=ModuleResponse)
async def activate_module(
    module_id: str,
    user_data: Dict = Depends(require_admin_master),
    service: ModuleService = Depends(get_module_service)
):
    return service.set_status(module_id, ModuleStatus.ACTIVE, user_id=user_data["user_id"])


@router.post("/{module_id}/deactivate", response_model=ModuleResponse)
async def deactivate_module(
    module_id: str,
    user_data: Dict = Depends(require_admin_master),
    service: ModuleService = Depends(get_module_service)
):
    return service.set_status(module_id, ModuleStatus.INACTIVE, user_id=user_data["user_id"])


@router.post("/{module_id}/archive", response_model=ModuleResponse)
async def archive_module(
    module_id: str,
    user_data: Dict = Depends(require_admin_master),
    service: ModuleService = Depends(get_module_service)
):
    return service.set_status(module_id, ModuleStatus.ARCHIVED, user_id=user_data["user_id"])


@router.delete("/{module_id}", status_code=204)
async def delete_module(
    module_id: str,
    hard: bool = False,
    user_data: Dict = Depends(require_admin_master),
    service: ModuleService = Depends(get_module_service)
):
    """Soft delete; ?hard=true removes the module and its rows"""
    service.delete_module(module_id, hard=hard, user_id=user_data["user_id"])
    return None


# Version endpoints
@router.get("/{module_id}/versions", response_model=List[ModuleVersionResponse])
async def list_versions(
    module_id: str,
    user_data: Dict = Depends(require_admin_master),
    service: ModuleVersionService = Depends(get_version_service)
):
    return service.list_versions(module_id)


@router.post("/{module_id}/versions", response_model=ModuleVersionResponse, status_code=201)
async def create_version(
    module_id: str,
    version_data: ModuleVersionCreate,
    user_data: Dict = Depends(require_admin_master),
    service: ModuleVersionService = Depends(get_version_service)
):
    return service.create_version(module_id, version_data)


@router.post("/{module_id}/versions/{version_id}/stable", response_model=ModuleVersionResponse)
async def mark_version_stable(
    module_id: str,
    version_id: str,
    user_data: Dict = Depends(require_admin_master),
    service: ModuleVersionService = Depends(get_version_service)
):
    return service.mark_stable(module_id, version_id)


# Dependency endpoints
@router.get("/{module_id}/dependencies", response_model=List[ModuleDependencyResponse])
async def list_dependencies(
    module_id: str,
    user_data: Dict = Depends(require_admin_master),
    service: ModuleDependencyService = Depends(get_dependency_service)
):
    return service.list_dependencies(module_id)


@router.post("/{module_id}/dependencies", response_model=ModuleDependencyResponse, status_code=201)
async def add_dependency(
    module_id: str,
    dependency: ModuleDependencyCreate,
    user_data: Dict = Depends(require_admin_master),
    service: ModuleDependencyService = Depends(get_dependency_service)
):
    return service.add_dependency(module_id, dependency.depends_on_module_id)


@router.delete("/{module_id}/dependencies/{dependency_id}", status_code=204)
async def remove_dependency(
    module_id: str,
    dependency_id: str,
    user_data: Dict = Depends(require_admin_master),
    service: ModuleDependencyService = Depends(get_dependency_service)
):
    service.remove_dependency(module_id, dependency_id)
    return None


# Permission matrix endpoints
@router.get("/{module_id}/permissions", response_model=ModulePermissionMatrixResponse)
async def get_module_permissions(
    module_id: str,
    user_data: Dict = Depends(require_admin_master),
    service: ModulePermissionService = Depends(get_module_permission_service)
):
    """Full role x action matrix; rows never saved read as denied"""
    return service.get_matrix(module_id)


@router.put("/{module_id}/permissions", response_model=ModulePermissionMatrixResponse)
async def save_module_permissions(
    module_id: str,
    matrix: ModulePermissionMatrix,
    user_data: Dict = Depends(require_admin_master),
    service: ModulePermissionService = Depends(get_module_permission_service)
):
    """Replace the module's overrides with a complete matrix"""
    return service.save_matrix(module_id, matrix)
