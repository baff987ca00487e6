from fastapi import APIRouter, Depends, HTTPException, Query
from app.config.permissions_config import MODULE_ACTIONS
from app.modules.access.schemas import (
    AccessCheckRequest, AccessDecision,
    NavigationResponse, UserModulesResponse, PermissionCheckResponse
)
from app.modules.access.service import AccessService
from app.modules.module_registry.service import ModuleService
from app.core.dependencies import (
    get_access_service,
    get_current_user,
    get_session_resolver,
)
from app.database.supabase_client import get_supabase
from supabase import Client
from typing import Callable, Dict, Optional

router = APIRouter(prefix="/access", tags=["access"])


@router.get("/modules", response_model=UserModulesResponse)
async def get_user_modules(
    user_data: Dict = Depends(get_current_user),
    service: AccessService = Depends(get_access_service)
):
    """Modules the current user may view (empty on backend failure)"""
    return UserModulesResponse(modules=service.allowed_modules(user_data))


@router.get("/navigation", response_model=NavigationResponse)
async def get_navigation(
    user_data: Dict = Depends(get_current_user),
    service: AccessService = Depends(get_access_service)
):
    """Sidebar entries for the current user"""
    return NavigationResponse(role=user_data["role"], items=service.navigation(user_data))


@router.post("/check", response_model=AccessDecision)
async def check_route_access(
    check: AccessCheckRequest,
    resolve_user: Callable[[], Optional[dict]] = Depends(get_session_resolver),
    service: AccessService = Depends(get_access_service)
):
    """Run the route guard. Always answers 200; the decision is in ``state``."""
    return service.check_route(resolve_user, check.route, check.allowed_roles, check.fallback)


@router.get("/modules/{module_id}/can", response_model=PermissionCheckResponse)
async def check_module_permission(
    module_id: str,
    action: str = Query("view"),
    user_data: Dict = Depends(get_current_user),
    service: AccessService = Depends(get_access_service),
    supabase: Client = Depends(get_supabase)
):
    """Resolve one action on one module for the current user"""
    if action not in MODULE_ACTIONS:
        raise HTTPException(status_code=422, detail=f"action must be one of {MODULE_ACTIONS}")
    module = ModuleService(supabase).get_module(module_id)
    return PermissionCheckResponse(
        module_id=module_id,
        action=action,
        allowed=service.can(user_data, module, action)
    )
