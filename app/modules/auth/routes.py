from fastapi import APIRouter, Depends
from app.modules.auth.schemas import LoginRequest, TokenResponse, SessionResponse
from app.modules.auth.service import AuthService
from app.modules.access.service import AccessService
from app.core.exceptions import PermissionFetchFailed
from app.core.dependencies import (
    get_access_service,
    get_auth_service,
    get_bearer_token,
    get_current_user,
)
from typing import Dict, Optional

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: Optional[str] = Depends(get_bearer_token),
    service: AuthService = Depends(get_auth_service)
):
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=SessionResponse)
async def get_session(
    current_user: Dict = Depends(get_current_user),
    access_service: AccessService = Depends(get_access_service)
):
    """Current profile, its role grants and the modules it may open (for frontend UI)."""
    try:
        grants = access_service.snapshot_for(current_user).role_grants
    except PermissionFetchFailed:
        grants = set()
    return SessionResponse(
        **current_user,
        permissions=sorted(f"{resource}:{action}" for resource, action in grants),
        modules=access_service.allowed_modules(current_user)
    )
