# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - Email/password registration and login (auth.users table)
# - OAuth and magic-link sign-in (PKCE code exchange)
# - JWT token generation and validation

"""
Supabase Auth calls used by AuthService:
- auth.sign_up() - Register new users (full_name stored in user_metadata)
- auth.sign_in_with_password() - Authenticate users
- auth.exchange_code_for_session() - Complete OAuth/magic-link sign-in (/auth/callback)
- auth.get_user() - Resolve the current user from a bearer token
- auth.sign_out() - Logout users

Admin role:
- app_metadata.role == "admin" (set server-side via auth.admin.update_user_by_id,
  see the admin users module). Users cannot change app_metadata themselves.

Creator profile fields read from user_metadata:
- full_name / name - display name on automation cards and the leaderboard
- avatar_url / picture - avatar
"""
