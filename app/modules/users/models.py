# Supabase tables: profiles, user_permissions, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

profiles (tenant scoped by company_id):
- id: uuid (primary key)
- user_id: uuid (unique, not null, references auth.users.id)
- name: text (not null)
- email: text (not null) - synced from auth.users
- role: text (not null) - roles.name, e.g. "tecnico"
- role_id: uuid (nullable, references roles.id)
- company_id: uuid (nullable, references companies.id) - owning tenant
- phone: text (nullable)
- avatar_url: text (nullable)
- active: boolean (not null, default true) - profiles are deactivated, never deleted
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Note: rows are created at account provisioning. Row-level security limits
non admin_master users to their own company.

user_permissions (per-profile module access, overrides role defaults for "view"):
- id: uuid (primary key)
- user_id: uuid (not null, references profiles.id)
- module_id: uuid (not null, references modules.id)
- can_access: boolean (not null, default true)
- granted_by: uuid (nullable, references profiles.id)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
- unique (user_id, module_id)

Deleting the row restores the role default.
"""
