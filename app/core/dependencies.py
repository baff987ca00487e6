"""
Core dependencies for route protection and permission checking
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config.settings import settings
from app.core.exceptions import AuthenticationMissing
from app.database.supabase_client import get_supabase
from app.modules.access.schemas import GuardState
from app.modules.access.service import AccessService
from app.modules.auth.service import AuthService
from supabase import Client
from typing import Any, Callable, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _get_request_cache(request: Request) -> Dict[str, Any]:
    """Return request-scoped cache for access data (profile, permission snapshots, active modules)."""
    if not hasattr(request.state, "access_cache"):
        request.state.access_cache = {}
    return request.state.access_cache


def get_access_cache(request: Request) -> Dict[str, Any]:
    return _get_request_cache(request)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_access_service(
    supabase: Client = Depends(get_supabase),
    cache: Dict[str, Any] = Depends(get_access_cache)
) -> AccessService:
    return AccessService(supabase, cache)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> Optional[str]:
    if credentials is None:
        return None
    return credentials.credentials


def get_current_user(
    token: Optional[str] = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
    cache: Dict[str, Any] = Depends(get_access_cache)
) -> dict:
    """Resolve the bearer token to the caller's profile (role, company_id, active)"""
    if not token:
        raise AuthenticationMissing()
    if "user" not in cache:
        cache["user"] = auth_service.resolve_session(token)
    return cache["user"]


def get_session_resolver(
    token: Optional[str] = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> Callable[[], Optional[dict]]:
    """Deferred session lookup for the access guard; None when signed out"""
    def resolve() -> Optional[dict]:
        if not token:
            return None
        return auth_service.resolve_session(token)
    return resolve


def is_admin_master(user_data: dict) -> bool:
    return user_data.get("role") == settings.admin_master_role


def require_admin_master(user_data: dict = Depends(get_current_user)) -> dict:
    if not is_admin_master(user_data):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admin_master can perform this action"
        )
    return user_data


def require_permission(required_permission: str):
    """Factory for a dependency enforcing "<resource>:<action>".

    admin_master passes unconditionally; everyone else goes through the
    permission overlay resolver.
    """
    resource, action = required_permission.split(":", 1)

    def check_permission(
        user_data: dict = Depends(get_current_user),
        access_service: AccessService = Depends(get_access_service)
    ) -> dict:
        if is_admin_master(user_data):
            return user_data
        if not access_service.can_access_resource(user_data, resource, action):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {required_permission}"
            )
        return user_data
    return check_permission


def require_route_access(route: str, allowed_roles: Optional[List[str]] = None):
    """Factory for a dependency that runs the access guard for a UI route"""
    def check_route(
        user_data: dict = Depends(get_current_user),
        access_service: AccessService = Depends(get_access_service)
    ) -> dict:
        decision = access_service.check_route(lambda: user_data, route, allowed_roles)
        if decision.state != GuardState.GRANTED:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=decision.message)
        return user_data
    return check_route


def check_same_company(user_data: dict, target: dict) -> None:
    """Tenant isolation: only admin_master crosses company boundaries"""
    if is_admin_master(user_data):
        return
    if not user_data.get("company_id") or user_data.get("company_id") != target.get("company_id"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User belongs to another company"
        )
