# Supabase Auth + profiles
# Authentication is handled by Supabase Auth (auth.users table); the
# session resolver maps an auth user to exactly one profiles row.

"""
Supabase Auth provides:
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

The profile row (see app/modules/users/models.py) carries the role and
company_id used by every authorization decision. An auth user without a
profile row is rejected; no default role is ever assumed.
"""
