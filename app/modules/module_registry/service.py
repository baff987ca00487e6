import logging
import math
import re
import unicodedata
from datetime import datetime, timezone
from supabase import Client
from app.config.permissions_config import MODULE_ACTIONS, SYSTEM_ROLES
from app.modules.module_registry.schemas import (
    ModuleCreate, ModuleUpdate, ModuleResponse, ModuleListResponse, ModuleStatus, Pagination,
    ModuleVersionCreate, ModuleVersionResponse,
    ModuleDependencyResponse,
    ModulePermissionEntry, ModulePermissionMatrix, ModulePermissionMatrixResponse
)
from app.modules.roles.service import RoleService
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def generate_slug(name: str) -> str:
    """'Ordens de Serviço' -> 'ordens-de-servico'"""
    ascii_name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    ascii_name = re.sub(r"[^a-z0-9\s-]", "", ascii_name.lower())
    return re.sub(r"[\s-]+", "-", ascii_name).strip("-")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ModuleService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_module(self, module_data: ModuleCreate, user_id: Optional[str] = None) -> ModuleResponse:
        """Create a module; slug and url are derived from the name when absent"""
        slug = module_data.slug or generate_slug(module_data.name)
        if not slug:
            raise HTTPException(status_code=400, detail="Module name must contain letters or digits")

        try:
            existing = self.supabase.table("modules")\
                .select("id")\
                .eq("slug", slug)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=400, detail=f"Slug '{slug}' already in use")

            payload = module_data.model_dump(mode="json")
            if module_data.is_core and module_data.status != ModuleStatus.ACTIVE:
                # core modules are always listed, so they are never stored disabled
                logger.info(f"Core module {slug} created as active (requested {module_data.status.value})")
                payload["status"] = ModuleStatus.ACTIVE.value
            payload.update({
                "slug": slug,
                "url": module_data.url or f"/{slug}",
                "created_by": user_id,
                "updated_by": user_id,
            })
            result = self.supabase.table("modules").insert(payload).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create module")

            logger.info(f"Module created: {slug}")
            return ModuleResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating module {module_data.name}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_module(self, module_id: str) -> ModuleResponse:
        """Get a module that has not been soft-deleted"""
        try:
            result = self.supabase.table("modules")\
                .select("*")\
                .eq("id", module_id)\
                .is_("deleted_at", "null")\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error getting module {module_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        if not result.data:
            raise HTTPException(status_code=404, detail="Module not found")
        return ModuleResponse(**result.data[0])

    def list_modules(
        self,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        status: Optional[ModuleStatus] = None,
        category: Optional[str] = None
    ) -> ModuleListResponse:
        """Paginated admin listing"""
        page = max(page, 1)
        try:
            query = self.supabase.table("modules")\
                .select("*", count="exact")\
                .is_("deleted_at", "null")
            if search:
                query = query.ilike("name", f"%{search}%")
            if status:
                query = query.eq("status", status.value)
            if category:
                query = query.eq("category", category)

            result = query.order("created_at", desc=True)\
                .limit(limit)\
                .offset((page - 1) * limit)\
                .execute()

            total = result.count or 0
            return ModuleListResponse(
                data=[ModuleResponse(**module) for module in result.data or []],
                pagination=Pagination(
                    page=page,
                    limit=limit,
                    total=total,
                    pages=math.ceil(total / limit) if limit else 0
                )
            )
        except Exception as e:
            logger.error(f"Error listing modules: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_active_modules(self) -> List[ModuleResponse]:
        """End-user facing listing. Backend errors propagate to the caller."""
        result = self.supabase.table("modules")\
            .select("*")\
            .eq("status", ModuleStatus.ACTIVE.value)\
            .is_("deleted_at", "null")\
            .order("name")\
            .execute()
        return [ModuleResponse(**module) for module in result.data or []]

    def update_module(self, module_id: str, module_data: ModuleUpdate, user_id: Optional[str] = None) -> ModuleResponse:
        module = self.get_module(module_id)
        update_data = module_data.model_dump(mode="json", exclude_none=True)

        still_core = update_data.get("is_core", module.is_core)
        new_status = update_data.get("status", module.status.value)
        if still_core and new_status != ModuleStatus.ACTIVE.value:
            raise HTTPException(status_code=400, detail="Core modules cannot be disabled")

        if "slug" in update_data and update_data["slug"] != module.slug:
            clash = self.supabase.table("modules")\
                .select("id")\
                .eq("slug", update_data["slug"])\
                .execute()
            if clash.data:
                raise HTTPException(status_code=400, detail=f"Slug '{update_data['slug']}' already in use")

        update_data.update({"updated_by": user_id, "updated_at": _now()})
        try:
            result = self.supabase.table("modules")\
                .update(update_data)\
                .eq("id", module_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Module not found")
            return ModuleResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating module {module_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def set_status(self, module_id: str, status: ModuleStatus, user_id: Optional[str] = None) -> ModuleResponse:
        """Activate, deactivate or archive"""
        module = self.get_module(module_id)
        if module.is_core and status != ModuleStatus.ACTIVE:
            raise HTTPException(status_code=400, detail="Core modules cannot be disabled")

        result = self.supabase.table("modules")\
            .update({"status": status.value, "updated_by": user_id, "updated_at": _now()})\
            .eq("id", module_id)\
            .execute()
        logger.info(f"Module {module.slug} status -> {status.value}")
        return ModuleResponse(**result.data[0])

    def delete_module(self, module_id: str, hard: bool = False, user_id: Optional[str] = None) -> bool:
        """Soft delete by default; hard delete only for unused, non-core modules"""
        module = self.get_module(module_id)
        if module.is_core:
            raise HTTPException(status_code=400, detail="Core modules cannot be deleted")

        try:
            if not hard:
                self.supabase.table("modules")\
                    .update({"deleted_at": _now(), "updated_by": user_id})\
                    .eq("id", module_id)\
                    .execute()
                return True

            dependents = self.supabase.table("module_dependencies")\
                .select("id")\
                .eq("depends_on_module_id", module_id)\
                .execute()
            if dependents.data:
                raise HTTPException(status_code=400, detail="Cannot delete module with dependencies")

            for table in ("module_permissions", "module_versions", "module_dependencies"):
                self.supabase.table(table).delete().eq("module_id", module_id).execute()

            result = self.supabase.table("modules")\
                .delete()\
                .eq("id", module_id)\
                .execute()
            logger.info(f"Module hard deleted: {module.slug}")
            return len(result.data or []) > 0
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting module {module_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))


class ModuleVersionService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_versions(self, module_id: str) -> List[ModuleVersionResponse]:
        result = self.supabase.table("module_versions")\
            .select("*")\
            .eq("module_id", module_id)\
            .order("created_at", desc=True)\
            .execute()
        return [ModuleVersionResponse(**version) for version in result.data or []]

    def create_version(self, module_id: str, version_data: ModuleVersionCreate) -> ModuleVersionResponse:
        ModuleService(self.supabase).get_module(module_id)

        existing = self.supabase.table("module_versions")\
            .select("id")\
            .eq("module_id", module_id)\
            .eq("semver", version_data.semver)\
            .execute()
        if existing.data:
            raise HTTPException(status_code=400, detail=f"Version {version_data.semver} already exists")

        result = self.supabase.table("module_versions").insert({
            "module_id": module_id,
            "semver": version_data.semver,
            "changelog": version_data.changelog,
            "is_stable": False,
            "created_at": _now()
        }).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to create version")
        return ModuleVersionResponse(**result.data[0])

    def mark_stable(self, module_id: str, version_id: str) -> ModuleVersionResponse:
        """Make one version the module's only stable version"""
        target = self.supabase.table("module_versions")\
            .select("id")\
            .eq("id", version_id)\
            .eq("module_id", module_id)\
            .execute()
        if not target.data:
            raise HTTPException(status_code=404, detail="Version not found")

        # unmark first so there is never more than one stable version
        self.supabase.table("module_versions")\
            .update({"is_stable": False})\
            .eq("module_id", module_id)\
            .execute()

        result = self.supabase.table("module_versions")\
            .update({"is_stable": True})\
            .eq("id", version_id)\
            .execute()
        return ModuleVersionResponse(**result.data[0])


class ModuleDependencyService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_dependencies(self, module_id: str) -> List[ModuleDependencyResponse]:
        result = self.supabase.table("module_dependencies")\
            .select("*")\
            .eq("module_id", module_id)\
            .execute()
        return [ModuleDependencyResponse(**dep) for dep in result.data or []]

    def add_dependency(self, module_id: str, depends_on_module_id: str) -> ModuleDependencyResponse:
        if module_id == depends_on_module_id:
            raise HTTPException(status_code=400, detail="A module cannot depend on itself")

        module_service = ModuleService(self.supabase)
        module_service.get_module(module_id)
        module_service.get_module(depends_on_module_id)

        existing = self.supabase.table("module_dependencies")\
            .select("id")\
            .eq("module_id", module_id)\
            .eq("depends_on_module_id", depends_on_module_id)\
            .execute()
        if existing.data:
            raise HTTPException(status_code=400, detail="Dependency already exists")

        result = self.supabase.table("module_dependencies").insert({
            "module_id": module_id,
            "depends_on_module_id": depends_on_module_id
        }).execute()
        return ModuleDependencyResponse(**result.data[0])

    def remove_dependency(self, module_id: str, dependency_id: str) -> bool:
        result = self.supabase.table("module_dependencies")\
            .delete()\
            .eq("id", dependency_id)\
            .eq("module_id", module_id)\
            .execute()
        return len(result.data or []) > 0


class ModulePermissionService:
    """Per-module role x action overrides, always handled as a full matrix"""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def matrix_roles(self) -> List[str]:
        """Built-in roles in privilege order, then custom roles alphabetically"""
        registry = RoleService(self.supabase).list_role_names()
        custom = sorted(name for name in registry if name not in SYSTEM_ROLES)
        return list(SYSTEM_ROLES) + custom

    def get_matrix(self, module_id: str) -> ModulePermissionMatrixResponse:
        ModuleService(self.supabase).get_module(module_id)
        result = self.supabase.table("module_permissions")\
            .select("role, action, allowed")\
            .eq("module_id", module_id)\
            .execute()
        stored = {(row["role"], row["action"]): bool(row["allowed"]) for row in result.data or []}

        roles = self.matrix_roles()
        entries = [
            ModulePermissionEntry(role=role, action=action, allowed=stored.get((role, action), False))
            for role in roles
            for action in MODULE_ACTIONS
        ]
        return ModulePermissionMatrixResponse(
            module_id=module_id,
            roles=roles,
            actions=list(MODULE_ACTIONS),
            permissions=entries
        )

    def save_matrix(self, module_id: str, matrix: ModulePermissionMatrix) -> ModulePermissionMatrixResponse:
        """Upsert every (role, action) row; partial matrices are rejected"""
        ModuleService(self.supabase).get_module(module_id)

        roles = self.matrix_roles()
        expected = {(role, action) for role in roles for action in MODULE_ACTIONS}
        submitted = [(entry.role, entry.action) for entry in matrix.permissions]

        if len(submitted) != len(set(submitted)):
            raise HTTPException(status_code=400, detail="Duplicate role/action rows in permission matrix")
        missing = expected - set(submitted)
        extra = set(submitted) - expected
        if missing or extra:
            raise HTTPException(
                status_code=400,
                detail=f"Permission matrix must cover every role and action "
                       f"(missing {len(missing)}, unknown {len(extra)})"
            )

        rows = [
            {"module_id": module_id, "role": entry.role, "action": entry.action, "allowed": entry.allowed}
            for entry in matrix.permissions
        ]
        try:
            self.supabase.table("module_permissions")\
                .upsert(rows, on_conflict="module_id,role,action")\
                .execute()
        except Exception as e:
            logger.error(f"Error saving permissions for module {module_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        logger.info(f"Saved {len(rows)} permission rows for module {module_id}")
        return self.get_matrix(module_id)
