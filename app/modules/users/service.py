import logging
from datetime import datetime, timezone
from supabase import Client
from app.modules.users.schemas import UserUpdate, UserResponse, UserModuleAccessResponse
from app.modules.module_registry.service import ModuleService
from app.modules.roles.service import RoleService
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_user_by_id(self, user_id: str) -> UserResponse:
        """Get profile by ID"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error getting profile {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        if not result.data:
            raise HTTPException(status_code=404, detail="User not found")
        return UserResponse(**result.data[0])

    def list_users(
        self,
        company_id: Optional[str] = None,
        active: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[UserResponse]:
        """List profiles; company_id=None lists every tenant (admin_master only)"""
        try:
            query = self.supabase.table("profiles").select("*")
            if company_id is not None:
                query = query.eq("company_id", company_id)
            if active is not None:
                query = query.eq("active", active)
            result = query.order("name")\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [UserResponse(**user) for user in result.data or []]
        except Exception as e:
            logger.error(f"Error listing profiles: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def _update(self, user_id: str, update_data: dict) -> UserResponse:
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating profile {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        if not result.data:
            raise HTTPException(status_code=404, detail="User not found")
        return UserResponse(**result.data[0])

    def update_user(self, user_id: str, user_data: UserUpdate) -> UserResponse:
        """Update profile fields the user owns"""
        return self._update(user_id, user_data.model_dump(exclude_none=True))

    def change_role(self, user_id: str, role_name: str) -> UserResponse:
        """Assign a registered role to a profile"""
        role = RoleService(self.supabase).get_role(role_name)
        logger.info(f"Profile {user_id} role -> {role.name}")
        return self._update(user_id, {"role": role.name, "role_id": role.id})

    def set_active(self, user_id: str, active: bool) -> UserResponse:
        """Soft (de)activation; profiles are never hard-deleted"""
        logger.info(f"Profile {user_id} active -> {active}")
        return self._update(user_id, {"active": active})


class UserPermissionService:
    """Per-profile module access overrides (user_permissions)"""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def set_module_access(
        self,
        user_id: str,
        module_id: str,
        can_access: bool,
        granted_by: Optional[str] = None
    ) -> UserModuleAccessResponse:
        """Grant or revoke one module for one profile, whatever the role says"""
        ModuleService(self.supabase).get_module(module_id)
        try:
            result = self.supabase.table("user_permissions")\
                .upsert({
                    "user_id": user_id,
                    "module_id": module_id,
                    "can_access": can_access,
                    "granted_by": granted_by,
                    "updated_at": datetime.now(timezone.utc).isoformat()
                }, on_conflict="user_id,module_id")\
                .execute()
        except Exception as e:
            logger.error(f"Error saving module access for profile {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        logger.info(f"Profile {user_id} module {module_id} can_access -> {can_access}")
        return UserModuleAccessResponse(**result.data[0])

    def reset_module_access(self, user_id: str, module_id: str) -> bool:
        """Drop the override so the role default applies again"""
        try:
            result = self.supabase.table("user_permissions")\
                .delete()\
                .eq("user_id", user_id)\
                .eq("module_id", module_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error resetting module access for profile {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        return len(result.data or []) > 0
