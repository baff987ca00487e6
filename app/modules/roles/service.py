import logging
from datetime import datetime, timezone
from supabase import Client
from app.modules.roles.schemas import (
    PermissionResponse,
    RoleCreate, RoleUpdate, RoleResponse, RoleWithPermissionsResponse,
    RolePermissionsUpdateResponse
)
from typing import List, Optional, Set, Tuple
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class PermissionService:
    """Read-only access to the seeded permission catalog"""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_permission_by_id(self, permission_id: str) -> PermissionResponse:
        """Get permission by ID"""
        try:
            result = self.supabase.table("permissions")\
                .select("*")\
                .eq("id", permission_id)\
                .limit(1)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Permission not found")

            return PermissionResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error getting permission {permission_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_permissions_by_ids(self, permission_ids: List[str]) -> List[PermissionResponse]:
        if not permission_ids:
            return []
        result = self.supabase.table("permissions")\
            .select("*")\
            .in_("id", permission_ids)\
            .order("name")\
            .execute()
        return [PermissionResponse(**permission) for permission in result.data or []]

    def list_permissions(self, resource: Optional[str] = None) -> List[PermissionResponse]:
        """List the catalog, optionally filtered by resource"""
        try:
            query = self.supabase.table("permissions").select("*")
            if resource:
                query = query.eq("resource", resource)
            result = query.order("name").execute()
            return [PermissionResponse(**permission) for permission in result.data or []]
        except Exception as e:
            logger.error(f"Error listing permissions: {e}")
            raise HTTPException(status_code=500, detail=str(e))


class RoleService:
    """Role registry: roles, their permission grants and administration"""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_role(self, role_data: RoleCreate) -> RoleResponse:
        """Create a new (non-system) role"""
        try:
            existing = self.supabase.table("roles")\
                .select("id")\
                .eq("name", role_data.name)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=400, detail="Role name already exists")

            result = self.supabase.table("roles").insert({
                "name": role_data.name,
                "display_name": role_data.display_name,
                "description": role_data.description,
                "color": role_data.color,
                "is_system_role": False
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create role")

            logger.info(f"Role created: {role_data.name}")
            return RoleResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating role {role_data.name}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def _fetch_role(self, column: str, value: str) -> RoleResponse:
        try:
            result = self.supabase.table("roles")\
                .select("*")\
                .eq(column, value)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error getting role by {column}={value}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        if not result.data:
            raise HTTPException(status_code=404, detail="Role not found")
        return RoleResponse(**result.data[0])

    def get_role_by_id(self, role_id: str) -> RoleResponse:
        return self._fetch_role("id", role_id)

    def get_role(self, name: str) -> RoleResponse:
        """Get role by its unique name"""
        return self._fetch_role("name", name)

    def list_roles(self, limit: int = 100, offset: int = 0) -> List[RoleResponse]:
        try:
            result = self.supabase.table("roles")\
                .select("*")\
                .order("display_name")\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [RoleResponse(**role) for role in result.data or []]
        except Exception as e:
            logger.error(f"Error listing roles: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_role_names(self) -> List[str]:
        result = self.supabase.table("roles").select("name").execute()
        return [row["name"] for row in result.data or []]

    def update_role(self, role_id: str, role_data: RoleUpdate) -> RoleResponse:
        """Update role; built-in roles keep their name"""
        role = self.get_role_by_id(role_id)
        if role.is_system_role and role_data.name and role_data.name != role.name:
            raise HTTPException(status_code=400, detail="System roles cannot be renamed")

        renamed = bool(role_data.name) and role_data.name != role.name
        update_data = role_data.model_dump(exclude_none=True)
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            if renamed:
                clash = self.supabase.table("roles")\
                    .select("id")\
                    .eq("name", role_data.name)\
                    .execute()
                if clash.data:
                    raise HTTPException(status_code=400, detail="Role name already exists")

            result = self.supabase.table("roles")\
                .update(update_data)\
                .eq("id", role_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Role not found")

            if renamed:
                # profiles and module overrides reference roles by name
                for table in ("profiles", "module_permissions"):
                    self.supabase.table(table)\
                        .update({"role": role_data.name})\
                        .eq("role", role.name)\
                        .execute()
                logger.info(f"Role renamed: {role.name} -> {role_data.name}")

            return RoleResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating role {role_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_role(self, role_id: str) -> bool:
        """Delete a custom role. System roles and roles still assigned to users are kept."""
        role = self.get_role_by_id(role_id)
        if role.is_system_role:
            raise HTTPException(status_code=400, detail="System roles cannot be deleted")

        try:
            in_use = self.supabase.table("profiles")\
                .select("id")\
                .eq("role", role.name)\
                .limit(1)\
                .execute()
            if in_use.data:
                raise HTTPException(status_code=400, detail="Role is assigned to users")

            self.supabase.table("role_permissions")\
                .delete()\
                .eq("role_id", role_id)\
                .execute()

            self.supabase.table("module_permissions")\
                .delete()\
                .eq("role", role.name)\
                .execute()

            result = self.supabase.table("roles")\
                .delete()\
                .eq("id", role_id)\
                .execute()

            logger.info(f"Role deleted: {role.name}")
            return len(result.data or []) > 0
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting role {role_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_role_permissions(self, role_id: str) -> List[PermissionResponse]:
        """Get all permissions granted to a role"""
        try:
            result = self.supabase.table("role_permissions")\
                .select("permission_id")\
                .eq("role_id", role_id)\
                .execute()
            permission_ids = [item["permission_id"] for item in result.data or []]
            return PermissionService(self.supabase).get_permissions_by_ids(permission_ids)
        except Exception as e:
            logger.error(f"Error getting permissions for role {role_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_role_with_permissions(self, role_id: str) -> RoleWithPermissionsResponse:
        role = self.get_role_by_id(role_id)
        permissions = self.get_role_permissions(role_id)
        return RoleWithPermissionsResponse(**role.model_dump(), permissions=permissions)

    def list_permissions(self, role_name: str) -> Set[Tuple[str, str]]:
        """Blanket grants of a role as (resource, action) pairs.

        Backend errors propagate; the access service decides how to fail.
        """
        roles = self.supabase.table("roles")\
            .select("id")\
            .eq("name", role_name)\
            .execute()
        if not roles.data:
            return set()

        links = self.supabase.table("role_permissions")\
            .select("permission_id")\
            .eq("role_id", roles.data[0]["id"])\
            .execute()
        permission_ids = [item["permission_id"] for item in links.data or []]
        if not permission_ids:
            return set()

        permissions = self.supabase.table("permissions")\
            .select("resource, action")\
            .in_("id", permission_ids)\
            .execute()
        return {(p["resource"], p["action"]) for p in permissions.data or []}

    def update_role_permissions(self, role_id: str, permission_ids: List[str]) -> RolePermissionsUpdateResponse:
        """Replace the role's checklist with exactly the given permissions"""
        self.get_role_by_id(role_id)

        permission_ids = list(dict.fromkeys(permission_ids))
        permission_service = PermissionService(self.supabase)
        permissions = permission_service.get_permissions_by_ids(permission_ids)
        unknown = set(permission_ids) - {p.id for p in permissions}
        if unknown:
            raise HTTPException(status_code=400, detail=f"Unknown permissions: {sorted(unknown)}")

        try:
            self.supabase.table("role_permissions")\
                .delete()\
                .eq("role_id", role_id)\
                .execute()

            if permission_ids:
                self.supabase.table("role_permissions").insert([
                    {"role_id": role_id, "permission_id": pid}
                    for pid in permission_ids
                ]).execute()
        except Exception as e:
            logger.error(f"Error updating permissions for role {role_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        return RolePermissionsUpdateResponse(
            role_id=role_id,
            assigned_count=len(permissions),
            permissions=permissions,
            message=f"Updated role with {len(permissions)} permissions"
        )
