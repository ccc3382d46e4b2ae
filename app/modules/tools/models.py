# Supabase tables: tool_categories, tools
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

tool_categories:
- id: uuid (primary key)
- name: text (unique, not null) - e.g. Communication, CRM, Email, File Storage, Project Management
- description: text (nullable)
- created_at: timestamp (default: now())

tools:
- id: uuid (primary key)
- name: text (not null)
- category_id: uuid (foreign key to tool_categories.id, not null)
- logo_url: text (nullable)
- is_active: boolean (default: true)
- created_at: timestamp (default: now())
- unique constraint on (name, category_id)
"""
