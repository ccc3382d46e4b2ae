"""
Seed System Prompts Script
Populates system_prompts and tool_categories from the prompt catalog config.
Existing prompts keep their content unless --overwrite is passed, so edits
made in the admin interface survive a re-seed.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.config.prompts_config import get_prompt_catalog, DEFAULT_TOOL_CATEGORIES
from app.database.supabase_client import get_service_supabase
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def seed_prompts(supabase: Client, overwrite: bool = False):
    """Seed system prompts from config"""
    logger.info("Seeding system prompts...")

    created_count = 0
    updated_count = 0

    for prompt in get_prompt_catalog():
        try:
            existing = supabase.table("system_prompts")\
                .select("id")\
                .eq("name", prompt["name"])\
                .execute()

            if existing.data:
                update_data = {
                    "category": prompt["category"],
                    "description": prompt["description"],
                }
                if overwrite:
                    update_data["prompt_content"] = prompt["prompt_content"]
                supabase.table("system_prompts")\
                    .update(update_data)\
                    .eq("name", prompt["name"])\
                    .execute()
                updated_count += 1
                logger.debug(f"Updated prompt: {prompt['name']}")
            else:
                supabase.table("system_prompts").insert({**prompt, "version": 1}).execute()
                created_count += 1
                logger.debug(f"Created prompt: {prompt['name']}")
        except Exception as e:
            logger.error(f"Error processing prompt {prompt['name']}: {e}")

    logger.info(f"System prompts seeded: {created_count} created, {updated_count} updated")
    return created_count + updated_count


def seed_tool_categories(supabase: Client):
    """Create missing tool categories"""
    logger.info("Seeding tool categories...")

    existing = supabase.table("tool_categories").select("name").execute()
    existing_names = {c["name"] for c in existing.data} if existing.data else set()

    new_categories = [{"name": name} for name in DEFAULT_TOOL_CATEGORIES if name not in existing_names]
    if new_categories:
        supabase.table("tool_categories").insert(new_categories).execute()

    logger.info(f"Tool categories seeded: {len(new_categories)} created")
    return len(new_categories)


def main():
    """Main function to seed prompts and tool categories"""
    overwrite = "--overwrite" in sys.argv[1:]
    try:
        supabase = get_service_supabase()

        logger.info("Starting system prompt seeding...")
        prompt_count = seed_prompts(supabase, overwrite=overwrite)
        category_count = seed_tool_categories(supabase)

        logger.info("Seeding completed successfully!")
        logger.info(f"Total: {prompt_count} prompts, {category_count} new tool categories")

    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
