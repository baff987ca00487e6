"""
Permission overlay resolution.

Pure functions over already-fetched state. Precedence, highest first:

1. core module + "view"            -> allowed
2. user_permissions row ("view")   -> its ``can_access`` value
3. module_permissions row          -> its ``allowed`` value, true or false
4. role blanket grant for resource -> allowed
5. anything else                   -> denied
"""

from typing import Any, Dict, Mapping, Optional, Set, Tuple

from app.modules.module_registry.schemas import ModuleResponse

# (module_id, role, action) -> allowed
ModuleOverrides = Mapping[Tuple[str, str, str], bool]
# (resource, action)
RoleGrants = Set[Tuple[str, str]]
# module_id -> can_access, for one profile
UserAccess = Mapping[str, bool]


def resolve_permission(
    role: str,
    module: ModuleResponse,
    action: str,
    overrides: ModuleOverrides,
    role_grants: RoleGrants,
    user_access: Optional[UserAccess] = None,
) -> bool:
    if module.is_core and action == "view":
        return True

    if action == "view" and user_access and module.id in user_access:
        return bool(user_access[module.id])

    override = overrides.get((module.id, role, action))
    if override is not None:
        return bool(override)

    return (module.resource_key, action) in role_grants


class PermissionSnapshot:
    """Everything needed to answer permission questions for one role.

    Built once per request by the access service and discarded afterwards.
    Per-user access rows are passed separately since snapshots are shared
    by every profile with the same role.
    """

    def __init__(self, role: str, role_grants: RoleGrants, overrides: ModuleOverrides):
        self.role = role
        self.role_grants = set(role_grants)
        self.overrides: Dict[Tuple[str, str, str], bool] = dict(overrides)

    @classmethod
    def empty(cls, role: str) -> "PermissionSnapshot":
        return cls(role, set(), {})

    def has_override(self, module: ModuleResponse, action: str) -> bool:
        return (module.id, self.role, action) in self.overrides

    def can(self, module: ModuleResponse, action: str, user_access: Optional[UserAccess] = None) -> bool:
        return resolve_permission(self.role, module, action, self.overrides, self.role_grants, user_access)


def resolve(
    user: Dict[str, Any],
    module: ModuleResponse,
    action: str,
    snapshot: PermissionSnapshot,
    user_access: Optional[UserAccess] = None,
) -> bool:
    """Decision for a (user, module, action) triple.

    Grants in a snapshot taken for a different role are ignored.
    """
    role = user.get("role") or ""
    role_grants = snapshot.role_grants if role == snapshot.role else set()
    return resolve_permission(role, module, action, snapshot.overrides, role_grants, user_access)
