# Supabase tables: modules, module_versions, module_dependencies, module_permissions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

modules (global catalog):
- id: uuid (primary key)
- name: text (not null)
- slug: text (not null, unique) - url-safe, derived from name
- description: text (nullable)
- category: text (nullable)
- status: text (not null, default 'inactive') - active | inactive | archived
- visibility: text (not null, default 'internal') - internal | public
- is_core: boolean (not null, default false) - always viewable, cannot be disabled
- url: text (nullable) - UI route, e.g. "/equipamentos"
- icon: text (nullable) - icon identifier, see access.schemas.NavigationIcon
- resource: text (nullable) - permission resource; defaults to slug when null
- created_by / updated_by: uuid (nullable, references auth.users.id)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
- deleted_at: timestamp (nullable) - soft delete marker

module_permissions (per-module overrides of role grants):
- id: uuid (primary key)
- module_id: uuid (foreign key to modules.id, not null)
- role: text (not null) - roles.name
- action: text (not null) - view | create | update | delete | configure | activate
- allowed: boolean (not null, default false)
- unique constraint on (module_id, role, action)

module_versions (append-only):
- id: uuid (primary key)
- module_id: uuid (foreign key to modules.id, not null)
- semver: text (not null) - unique per module
- changelog: text (nullable)
- is_stable: boolean (not null, default false) - at most one true per module
- created_at: timestamp (default: now())

module_dependencies:
- id: uuid (primary key)
- module_id: uuid (foreign key to modules.id, not null)
- depends_on_module_id: uuid (foreign key to modules.id, not null)
- unique constraint on (module_id, depends_on_module_id)
"""
