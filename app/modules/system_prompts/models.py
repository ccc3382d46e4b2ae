# Supabase tables: system_prompts, system_prompt_versions, system_prompt_training_data
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

system_prompts:
- id: uuid (primary key)
- name: text (unique, not null) - looked up by name from the generation pipeline
- description: text (nullable)
- category: text (not null, default: 'custom') - values: validation, metadata_generation,
  json_generation, workflow_analysis, image_generation, automation_guide, custom
- prompt_content: text (not null)
- variables: jsonb (default: '{}')
- model_id: text (nullable, foreign key to ai_models.id)
- is_active: boolean (default: true)
- version: integer (default: 1)
- created_by: uuid (foreign key to auth.users.id, nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

system_prompt_versions:
- id: uuid (primary key)
- original_prompt_id: uuid (foreign key to system_prompts.id, on delete cascade)
- version_number: integer (not null)
- name, description, category, prompt_content, variables, is_active, created_by: copy of the
  archived system_prompts row
- archived_at: timestamp (default: now())

system_prompt_training_data:
- id: uuid (primary key)
- system_prompt_id: uuid (foreign key to system_prompts.id, on delete cascade)
- title: text (not null)
- content: text (not null)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
