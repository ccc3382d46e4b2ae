# Supabase Auth users (auth.users)
# No custom tables: users are read and updated through the Auth admin API
# (auth.admin.list_users / auth.admin.update_user_by_id) with the service-role key

"""
Fields read from each auth user:
- id, email, created_at, last_sign_in_at, email_confirmed_at
- app_metadata.role - "admin" for administrators; absent for regular users (reported as "user")

Role changes merge into the existing app_metadata so provider keys
(provider, providers) are preserved.
"""
