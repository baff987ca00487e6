"""
Seed Permissions and Roles Script
Populates the permission catalog, the built-in roles and their default grants
from app/config/permissions_config.py. Idempotent; safe to re-run.

Usage: python -m app.scripts.seed_permissions_roles
"""

import sys
import logging
from app.config.permissions_config import PERMISSION_MATRIX
from app.database.supabase_client import get_service_supabase
from supabase import Client

logger = logging.getLogger(__name__)


def seed_permissions(supabase: Client) -> int:
    """Insert or refresh every catalog permission"""
    logger.info("Seeding permissions...")

    created_count = 0
    updated_count = 0

    for perm in PERMISSION_MATRIX["permissions"]:
        try:
            existing = supabase.table("permissions")\
                .select("id")\
                .eq("name", perm["name"])\
                .execute()

            fields = {
                "resource": perm["resource"],
                "action": perm["action"],
                "display_name": perm["display_name"],
                "description": perm["description"]
            }
            if existing.data:
                supabase.table("permissions")\
                    .update(fields)\
                    .eq("name", perm["name"])\
                    .execute()
                updated_count += 1
            else:
                supabase.table("permissions").insert({"name": perm["name"], **fields}).execute()
                created_count += 1
        except Exception as e:
            logger.error(f"Error processing permission {perm['name']}: {e}")

    logger.info(f"Permissions seeded: {created_count} created, {updated_count} updated")
    return created_count + updated_count


def seed_roles(supabase: Client) -> int:
    """Insert or refresh built-in roles and sync their default grants"""
    logger.info("Seeding roles...")

    created_count = 0
    updated_count = 0

    for role in PERMISSION_MATRIX["roles"]:
        try:
            existing = supabase.table("roles")\
                .select("id")\
                .eq("name", role["name"])\
                .execute()

            fields = {
                "display_name": role["display_name"],
                "description": role["description"],
                "color": role["color"],
                "is_system_role": True
            }
            if existing.data:
                supabase.table("roles")\
                    .update(fields)\
                    .eq("name", role["name"])\
                    .execute()
                role_id = existing.data[0]["id"]
                updated_count += 1
            else:
                result = supabase.table("roles").insert({"name": role["name"], **fields}).execute()
                role_id = result.data[0]["id"]
                created_count += 1

            sync_role_permissions(supabase, role_id, role["name"], role["permissions"])
        except Exception as e:
            logger.error(f"Error processing role {role['name']}: {e}")

    logger.info(f"Roles seeded: {created_count} created, {updated_count} updated")
    return created_count + updated_count


def sync_role_permissions(supabase: Client, role_id: str, role_name: str, permission_names: list):
    """Make the role's grants match the config exactly"""
    permission_result = supabase.table("permissions")\
        .select("id")\
        .in_("name", permission_names)\
        .execute()

    permission_ids = {p["id"] for p in permission_result.data or []}
    if not permission_ids:
        logger.warning(f"No permissions found for role {role_name}")

    existing_result = supabase.table("role_permissions")\
        .select("permission_id")\
        .eq("role_id", role_id)\
        .execute()
    existing_ids = {p["permission_id"] for p in existing_result.data or []}

    new_assignments = [
        {"role_id": role_id, "permission_id": pid}
        for pid in sorted(permission_ids - existing_ids)
    ]
    if new_assignments:
        supabase.table("role_permissions").insert(new_assignments).execute()
        logger.debug(f"Assigned {len(new_assignments)} permissions to role {role_name}")

    to_remove = existing_ids - permission_ids
    if to_remove:
        supabase.table("role_permissions")\
            .delete()\
            .eq("role_id", role_id)\
            .in_("permission_id", list(to_remove))\
            .execute()
        logger.debug(f"Removed {len(to_remove)} permissions from role {role_name}")


def main():
    logging.basicConfig(level=logging.INFO)
    try:
        supabase = get_service_supabase()

        logger.info("Starting permissions and roles seeding...")
        perm_count = seed_permissions(supabase)
        role_count = seed_roles(supabase)

        logger.info(f"Total: {perm_count} permissions, {role_count} roles processed")
    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
