# Supabase tables: permissions, roles, role_permissions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

permissions (global catalog, seeded by app/scripts/seed_permissions_roles.py):
- id: uuid (primary key)
- name: text (not null, unique) - "<resource>:<action>", e.g. "ordens:create"
- resource: text (not null) - e.g. "ordens", "equipamentos"; matches module slugs
- action: text (not null) - view | create | update | delete | configure | activate
- display_name: text (not null)
- description: text (nullable)
- created_at: timestamp (default: now())

roles (global catalog):
- id: uuid (primary key)
- name: text (not null, unique) - e.g. "admin_master", "tecnico"
- display_name: text (not null)
- description: text (nullable)
- color: text (not null, default '#3B82F6') - presentation only
- is_system_role: boolean (not null, default false) - built-in roles cannot be deleted
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

role_permissions:
- id: uuid (primary key)
- role_id: uuid (foreign key to roles.id, not null)
- permission_id: uuid (foreign key to permissions.id, not null)
- created_at: timestamp (default: now())
- unique constraint on (role_id, permission_id)
"""
