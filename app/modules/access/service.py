import logging
from supabase import Client
from app.config.settings import settings
from app.core.exceptions import PermissionFetchFailed
from app.modules.access.guard import AccessGuard
from app.modules.access.navigation import compose_navigation
from app.modules.access.resolver import PermissionSnapshot
from app.modules.access.schemas import AccessDecision, AllowedModule, NavigationItem
from app.modules.module_registry.schemas import ModuleResponse
from app.modules.module_registry.service import ModuleService
from app.modules.roles.service import RoleService
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class AccessService:
    """Resolves what one authenticated profile may reach.

    State is fetched from Supabase on every call; ``cache`` is the
    request-scoped dict from core.dependencies and never outlives a request.
    """

    def __init__(self, supabase: Client, cache: Optional[Dict[str, Any]] = None):
        self.supabase = supabase
        self.cache = cache if cache is not None else {}

    def _load_snapshot(self, role: str) -> PermissionSnapshot:
        snapshots = self.cache.setdefault("snapshots", {})
        if role in snapshots:
            return snapshots[role]
        try:
            role_grants = RoleService(self.supabase).list_permissions(role)
            result = self.supabase.table("module_permissions")\
                .select("module_id, role, action, allowed")\
                .eq("role", role)\
                .execute()
            overrides = {
                (row["module_id"], row["role"], row["action"]): bool(row["allowed"])
                for row in result.data or []
            }
        except Exception as e:
            logger.error(f"Error loading permissions for role {role}: {e}")
            raise PermissionFetchFailed()
        snapshot = PermissionSnapshot(role, role_grants, overrides)
        snapshots[role] = snapshot
        return snapshot

    def _load_user_access(self, user: Dict[str, Any]) -> Dict[str, bool]:
        """module_id -> can_access rows set for this profile"""
        profile_id = user.get("id")
        if not profile_id:
            return {}
        access = self.cache.setdefault("user_access", {})
        if profile_id not in access:
            try:
                result = self.supabase.table("user_permissions")\
                    .select("module_id, can_access")\
                    .eq("user_id", profile_id)\
                    .execute()
            except Exception as e:
                logger.error(f"Error loading module access for profile {profile_id}: {e}")
                raise PermissionFetchFailed()
            access[profile_id] = {row["module_id"]: bool(row["can_access"]) for row in result.data or []}
        return access[profile_id]

    def _load_modules(self) -> List[ModuleResponse]:
        if "active_modules" not in self.cache:
            try:
                self.cache["active_modules"] = ModuleService(self.supabase).list_active_modules()
            except Exception as e:
                logger.error(f"Error loading modules: {e}")
                raise PermissionFetchFailed()
        return self.cache["active_modules"]

    def snapshot_for(self, user: Dict[str, Any]) -> PermissionSnapshot:
        return self._load_snapshot(user["role"])

    def module_rows(self, user: Dict[str, Any]) -> List[AllowedModule]:
        """One row per active module with its view decision. Raises PermissionFetchFailed."""
        if settings.use_allowed_modules_rpc:
            return self._rpc_module_rows(user)

        snapshot = self.snapshot_for(user)
        user_access = self._load_user_access(user)
        return [
            AllowedModule(
                module_id=module.id,
                module_name=module.slug,
                module_title=module.name,
                module_url=module.url or f"/{module.slug}",
                module_icon=module.icon,
                has_custom_permission=module.id in user_access or snapshot.has_override(module, "view"),
                is_allowed=snapshot.can(module, "view", user_access),
            )
            for module in self._load_modules()
        ]

    def _rpc_module_rows(self, user: Dict[str, Any]) -> List[AllowedModule]:
        try:
            result = self.supabase.rpc(
                "get_user_allowed_modules", {"target_user_id": user["user_id"]}
            ).execute()
        except Exception as e:
            logger.error(f"get_user_allowed_modules failed for {user.get('user_id')}: {e}")
            raise PermissionFetchFailed()
        return [AllowedModule(**row) for row in result.data or []]

    def allowed_modules(self, user: Dict[str, Any]) -> List[AllowedModule]:
        """Modules the user may view; empty when permission state cannot be loaded"""
        try:
            rows = self.module_rows(user)
        except PermissionFetchFailed:
            return []
        return [row for row in rows if row.is_allowed]

    def navigation(self, user: Dict[str, Any]) -> List[NavigationItem]:
        return compose_navigation(self.allowed_modules(user), user["role"])

    def can(self, user: Dict[str, Any], module: ModuleResponse, action: str) -> bool:
        """Fail-closed decision for one module and action"""
        try:
            return self.snapshot_for(user).can(module, action, self._load_user_access(user))
        except PermissionFetchFailed:
            return False

    def can_access_resource(self, user: Dict[str, Any], resource: str, action: str) -> bool:
        """Decision for an API resource: through its module when one maps to it,
        otherwise the role's blanket grant."""
        try:
            snapshot = self.snapshot_for(user)
            user_access = self._load_user_access(user)
            for module in self._load_modules():
                if module.resource_key == resource:
                    return snapshot.can(module, action, user_access)
            return (resource, action) in snapshot.role_grants
        except PermissionFetchFailed:
            return False

    def route_allowed(self, user: Dict[str, Any], route: str) -> bool:
        """True when the module served at ``route`` grants view. Raises on fetch errors."""
        route = route.rstrip("/") or "/"
        for row in self.module_rows(user):
            if row.module_url == route:
                return row.is_allowed
        return False

    def check_route(
        self,
        resolve_user: Callable[[], Optional[Dict[str, Any]]],
        route: str,
        allowed_roles: Optional[List[str]] = None,
        fallback: Optional[str] = None,
    ) -> AccessDecision:
        guard = AccessGuard(resolve_user, self.route_allowed)
        decision = guard.evaluate(route, allowed_roles, fallback)
        logger.debug(f"Route {route} for role {decision.role}: {decision.state.value}")
        return decision
