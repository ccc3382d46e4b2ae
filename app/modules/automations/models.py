# Supabase tables: automations, automation_tools
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

automations:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id, not null)
- user_input: text (not null) - the natural-language request
- title: text (nullable) - filled by the metadata step
- description: text (nullable)
- slug: text (unique, nullable) - title-based, used in public URLs
- tags: text[] (nullable)
- complexity: text (nullable) - values: simple, moderate, complex
- estimated_time_hours: numeric (nullable)
- generated_json: jsonb (nullable) - the workflow definition
- automation_guide: text (nullable) - setup guide JSON serialized as text
- prompt_id: uuid (foreign key to system_prompts.id, nullable) - prompt that produced generated_json
- prompt_version: integer (nullable)
- image_url: text (nullable) - public URL of the cover image
- status: text (not null, default: 'pending') - values: pending, generating,
  generating_workflow, generating_guide, completed, failed
- error_message: text (nullable)
- user_name, user_email, user_avatar_url: text (nullable) - creator snapshot taken at creation
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

automation_tools:
- id: uuid (primary key)
- automation_id: uuid (foreign key to automations.id, on delete cascade)
- tool_id: uuid (foreign key to tools.id)
- unique constraint on (automation_id, tool_id)

Database function:
- get_user_rank(p_user_id uuid) returns table(rank bigint) - position of the user on the
  completed-automations leaderboard
"""
