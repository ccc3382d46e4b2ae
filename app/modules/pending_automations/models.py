# Supabase table: pending_automations
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

pending_automations:
- id: uuid (primary key)
- user_input: text (not null)
- selected_tools: jsonb (not null, default: '{}') - step number -> tool name
- validation_result: jsonb (nullable) - result of /workflow/validate shown to the visitor
- expires_at: timestamp (not null) - created_at + PENDING_AUTOMATION_TTL_HOURS
- created_at: timestamp (default: now())

Rows are written by anonymous visitors, consumed by /automations/claim after sign-in
and removed by /admin/cleanup-pending or the optional cleanup loop once expired.
"""
