"""
Populate Slugs Script
Fills in missing slugs for automations that already have a title.
A unique-constraint conflict is retried once with a fresh random suffix.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.database.supabase_client import SupabaseClient, get_service_supabase
from app.utils.slugify import generate_slug
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def _set_slug(supabase: Client, automation_id: str, slug: str):
    supabase.table("automations")\
        .update({"slug": slug})\
        .eq("id", automation_id)\
        .execute()


def populate_missing_slugs(supabase: Client):
    """Returns (updated, failed) counts"""
    result = supabase.table("automations")\
        .select("id, title, slug")\
        .order("created_at")\
        .execute()
    automations = [a for a in result.data or [] if a.get("title") and not a.get("slug")]

    if not automations:
        logger.info("No automations found that need slug generation")
        return 0, 0

    logger.info(f"Found {len(automations)} automations without slugs")
    success_count = 0
    error_count = 0

    for automation in automations:
        try:
            slug = generate_slug(automation["title"])
            try:
                _set_slug(supabase, automation["id"], slug)
            except Exception as e:
                if getattr(e, "code", None) != UNIQUE_VIOLATION:
                    raise
                logger.warning(f"Slug conflict for '{automation['title']}', generating new one")
                slug = generate_slug(automation["title"])
                _set_slug(supabase, automation["id"], slug)
            logger.info(f"Updated {automation['id']} with slug: {slug}")
            success_count += 1
        except Exception as e:
            logger.error(f"Error processing automation {automation['id']}: {e}")
            error_count += 1

    logger.info(f"Slugs populated: {success_count} updated, {error_count} errors, {len(automations)} processed")
    return success_count, error_count


def main():
    if not SupabaseClient.has_service_role():
        logger.warning("SUPABASE_SERVICE_ROLE_KEY not set - using anon key, updates may be limited by RLS")
    try:
        populate_missing_slugs(get_service_supabase())
    except Exception as e:
        logger.error(f"Slug population failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
