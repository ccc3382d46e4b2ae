"""
Tests for the maintenance scripts: prompt seeding and slug backfill.
"""

import re

from app.config.prompts_config import DEFAULT_PROMPTS, DEFAULT_TOOL_CATEGORIES
from app.scripts.seed_system_prompts import seed_prompts, seed_tool_categories
from app.scripts.populate_slugs import populate_missing_slugs
from tests.fakes import FakeSupabase, FakeAPIError


class TestSeedPrompts:
    def test_creates_catalog(self):
        db = FakeSupabase()
        assert seed_prompts(db) == len(DEFAULT_PROMPTS)
        names = {p["name"] for p in db.rows("system_prompts")}
        assert names == set(DEFAULT_PROMPTS)
        assert all(p["version"] == 1 and p["is_active"] for p in db.rows("system_prompts"))

    def test_reseed_keeps_edited_content(self):
        db = FakeSupabase()
        db.seed("system_prompts", {
            "name": "json_generation", "category": "custom", "prompt_content": "edited by admin", "version": 3,
        })

        seed_prompts(db)

        prompt = next(p for p in db.rows("system_prompts") if p["name"] == "json_generation")
        assert prompt["prompt_content"] == "edited by admin"
        assert prompt["category"] == "json_generation"
        assert len(db.rows("system_prompts")) == len(DEFAULT_PROMPTS)

    def test_overwrite_replaces_content(self):
        db = FakeSupabase()
        db.seed("system_prompts", {"name": "json_generation", "category": "json_generation",
                                   "prompt_content": "edited by admin"})
        seed_prompts(db, overwrite=True)
        prompt = next(p for p in db.rows("system_prompts") if p["name"] == "json_generation")
        assert prompt["prompt_content"] == DEFAULT_PROMPTS["json_generation"][2]

    def test_tool_categories_only_adds_missing(self):
        db = FakeSupabase()
        db.seed("tool_categories", {"name": "CRM"})
        assert seed_tool_categories(db) == len(DEFAULT_TOOL_CATEGORIES) - 1
        assert seed_tool_categories(db) == 0


class TestPopulateSlugs:
    def test_fills_missing_slugs_only(self):
        db = FakeSupabase()
        missing, untitled, done = db.seed(
            "automations",
            {"title": "Weekly Digest", "slug": None},
            {"title": None, "slug": None},
            {"title": "Has slug", "slug": "has-slug-000000"},
        )

        assert populate_missing_slugs(db) == (1, 0)
        assert re.fullmatch(r"weekly-digest-[0-9a-f]{6}", db.get("automations", missing["id"])["slug"])
        assert db.get("automations", untitled["id"])["slug"] is None
        assert db.get("automations", done["id"])["slug"] == "has-slug-000000"

    def test_retries_once_on_conflict(self):
        db = FakeSupabase()
        (automation,) = db.seed("automations", {"title": "Weekly Digest"})
        db.fail_next("automations", "update", FakeAPIError("duplicate key value", code="23505"))

        assert populate_missing_slugs(db) == (1, 0)
        assert db.get("automations", automation["id"])["slug"].startswith("weekly-digest-")

    def test_other_errors_are_counted(self):
        db = FakeSupabase()
        db.seed("automations", {"title": "Weekly Digest"})
        db.fail_next("automations", "update", FakeAPIError("permission denied", code="42501"))
        assert populate_missing_slugs(db) == (0, 1)

    def test_nothing_to_do(self):
        assert populate_missing_slugs(FakeSupabase()) == (0, 0)
