# Supabase table: openrouter_models
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

openrouter_models:
- id: text (primary key) - OpenRouter model id, format provider/model-name (e.g. openai/gpt-4o-mini)
- name: text (not null)
- description: text (nullable)
- context_length: integer (nullable)
- pricing_prompt: numeric (nullable) - price per prompt token as reported by OpenRouter
- pricing_completion: numeric (nullable)
- is_active: boolean (default: true)
- supports_function_calling: boolean (default: false)
- supports_streaming: boolean (default: true)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

system_prompts.model_id references this table; prompts without a model use DEFAULT_MODEL.
"""
