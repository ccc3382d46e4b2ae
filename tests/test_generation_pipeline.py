"""
Tests for the generation pipeline: metadata -> workflow -> guide -> image,
failure handling per step and the one-shot generate flow.
"""

import json

import pytest
from fastapi import HTTPException

from app.config import settings
from app.llm.errors import OpenRouterError, ImageGenerationError
from app.modules.auth.service import user_to_dict
from app.modules.automations import pipeline_registry
from app.modules.automations.generation_worker import (
    GenerationError,
    normalize_guide,
    run_full_pipeline,
    run_remaining_pipeline,
    run_guide_regeneration,
    run_image_generation,
)
from tests.conftest import seed_prompts, seed_tools, seed_automation
from tests.fakes import FakeAPIError

USER_INPUT = "When a deal closes in HubSpot, post a message to the sales Slack channel"
SELECTED_TOOLS = {"1": "HubSpot", "2": "Slack", "3": "Slack"}

METADATA = {
    "title": "Closed Deal Alerts",
    "description": "Announce closed HubSpot deals in Slack",
    "tags": ["sales", "slack"],
    "complexity": "simple",
    "estimated_time_hours": 1,
}
GUIDE = {
    "setup time": "20 minutes",
    "difficulty": "Easy",
    "benefits": ["Faster announcements"],
    "requirements": ["HubSpot account", "Slack workspace"],
    "steps": [
        {"step": 1, "name": "Deal trigger", "node_type": "hubspotTrigger", "function": "Watch deals",
         "setup": ["Connect HubSpot"]},
        {"name": "Post message", "setup": "Pick a channel"},
    ],
}


@pytest.fixture(autouse=True)
def reset_registry():
    pipeline_registry.clear()
    yield
    pipeline_registry.clear()


@pytest.fixture
def owner(users):
    return user_to_dict(users["user"])


@pytest.fixture
def new_automation(fake_db, pipeline, owner):
    seed_prompts(fake_db)
    seed_tools(fake_db)
    return pipeline.automations.create_automation(owner, USER_INPUT)


class TestNormalizeGuide:
    def test_shapes_steps_and_difficulty(self):
        guide = normalize_guide(GUIDE)
        assert guide["difficulty"] == "easy"
        assert guide["setup time"] == "20 minutes"
        assert guide["steps"][1] == {
            "step": 2,
            "name": "Post message",
            "node_type": "",
            "function": "",
            "setup": ["Pick a channel"],
        }

    def test_unknown_difficulty_defaults_to_medium(self):
        assert normalize_guide({"difficulty": "extreme"})["difficulty"] == "medium"

    def test_setup_time_alias(self):
        assert normalize_guide({"setup_time": "1 hour"})["setup time"] == "1 hour"

    def test_rejects_non_objects(self):
        with pytest.raises(GenerationError):
            normalize_guide(["not", "a", "guide"])


class TestFullPipeline:
    def test_happy_path(self, fake_db, fake_llm, fake_images, pipeline, new_automation):
        fake_llm.json_queue = [METADATA, GUIDE]
        automation_id = new_automation["id"]

        run_full_pipeline(pipeline, automation_id, USER_INPUT, SELECTED_TOOLS)

        row = fake_db.get("automations", automation_id)
        assert row["status"] == "completed"
        assert row["title"] == "Closed Deal Alerts"
        assert row["slug"].startswith("closed-deal-alerts-")
        assert row["tags"] == ["sales", "slack"]
        assert row["generated_json"] == {"nodes": [{"name": "Start"}], "connections": {}}
        assert row["prompt_version"] == 1
        assert json.loads(row["automation_guide"])["difficulty"] == "easy"
        assert row["image_url"].startswith(
            f"https://storage.example.com/{settings.image_bucket}/automation-{automation_id}-"
        )
        assert fake_images.prompts == [fake_llm.image_prompt]
        assert len(fake_db.rows("automation_tools")) == 2
        assert fake_llm.methods_called() == ["generate_json", "generate_text", "generate_json", "complete"]
        assert not pipeline_registry.is_running(automation_id)

    def test_prompts_are_filled_in(self, fake_llm, pipeline, new_automation):
        fake_llm.json_queue = [METADATA, GUIDE]
        run_full_pipeline(pipeline, new_automation["id"], USER_INPUT, SELECTED_TOOLS)

        metadata_prompt = fake_llm.calls[0][1]
        assert USER_INPUT in metadata_prompt
        assert "HubSpot, Slack" in metadata_prompt
        workflow_message = fake_llm.calls[1][1]
        assert workflow_message.endswith("Selected Tools: HubSpot, Slack")
        assert fake_llm.calls[1][2] == settings.default_model
        guide_call = fake_llm.calls[2]
        assert "Closed Deal Alerts" in guide_call[1]
        assert guide_call[3]["max_tokens"] == 4000

    def test_metadata_failure_marks_failed(self, fake_db, fake_llm, pipeline, new_automation):
        fake_llm.json_queue = [OpenRouterError("AI returned invalid JSON")]
        run_full_pipeline(pipeline, new_automation["id"], USER_INPUT, SELECTED_TOOLS)

        row = fake_db.get("automations", new_automation["id"])
        assert row["status"] == "failed"
        assert row["error_message"].startswith("Metadata generation failed")
        assert fake_llm.methods_called() == ["generate_json"]

    def test_missing_metadata_prompt_marks_failed(self, fake_db, fake_llm, pipeline, owner):
        automation = pipeline.automations.create_automation(owner, USER_INPUT)
        run_full_pipeline(pipeline, automation["id"], USER_INPUT, {})

        row = fake_db.get("automations", automation["id"])
        assert row["status"] == "failed"
        assert "metadata_generation" in row["error_message"]
        assert fake_llm.calls == []

    def test_invalid_workflow_json_marks_failed(self, fake_db, fake_llm, pipeline, new_automation):
        fake_llm.json_queue = [METADATA]
        fake_llm.text = "I could not build that workflow."
        run_full_pipeline(pipeline, new_automation["id"], USER_INPUT, SELECTED_TOOLS)

        row = fake_db.get("automations", new_automation["id"])
        assert row["status"] == "failed"
        assert row["error_message"].startswith("Workflow generation failed")
        assert row["title"] == "Closed Deal Alerts"

    def test_inactive_guide_prompt_marks_failed(self, fake_db, fake_llm, pipeline, owner):
        seed_prompts(fake_db, automation_guide_generation={"is_active": False})
        automation = pipeline.automations.create_automation(owner, USER_INPUT)
        fake_llm.json_queue = [METADATA]

        run_full_pipeline(pipeline, automation["id"], USER_INPUT, {})

        row = fake_db.get("automations", automation["id"])
        assert row["status"] == "failed"
        assert row["error_message"].startswith("Guide generation failed")
        assert row["generated_json"]

    def test_image_failure_still_completes(self, fake_db, fake_llm, fake_images, pipeline, new_automation):
        fake_llm.json_queue = [METADATA, GUIDE]
        fake_images.error = ImageGenerationError("Failed to generate image")

        run_full_pipeline(pipeline, new_automation["id"], USER_INPUT, SELECTED_TOOLS)

        row = fake_db.get("automations", new_automation["id"])
        assert row["status"] == "completed"
        assert row.get("image_url") is None

    def test_second_run_for_same_automation_is_skipped(self, fake_llm, pipeline, new_automation):
        pipeline_registry.register(new_automation["id"])
        run_remaining_pipeline(pipeline, new_automation["id"], USER_INPUT, SELECTED_TOOLS)
        assert fake_llm.calls == []
        assert pipeline_registry.is_running(new_automation["id"])


class TestGuideRegeneration:
    def test_regenerates_guide(self, fake_db, fake_llm, pipeline, users):
        seed_prompts(fake_db)
        automation = seed_automation(fake_db, users["user"])
        fake_llm.json_queue = [GUIDE]

        run_guide_regeneration(pipeline, automation["id"])

        row = fake_db.get("automations", automation["id"])
        assert row["status"] == "completed"
        assert len(json.loads(row["automation_guide"])["steps"]) == 2

    def test_failure_keeps_completed_status(self, fake_db, fake_llm, pipeline, users):
        seed_prompts(fake_db)
        automation = seed_automation(fake_db, users["user"], automation_guide='{"steps": []}')
        fake_llm.json_queue = [OpenRouterError("OpenRouter API error: overloaded")]

        run_guide_regeneration(pipeline, automation["id"])

        row = fake_db.get("automations", automation["id"])
        assert row["status"] == "completed"
        assert row["automation_guide"] == '{"steps": []}'
        assert "overloaded" in row["error_message"]
        assert not pipeline_registry.is_running(automation["id"])


class TestImageGeneration:
    def test_uploads_and_stores_url(self, fake_db, fake_llm, fake_images, pipeline, users):
        seed_prompts(fake_db)
        automation = seed_automation(fake_db, users["user"])

        updated = pipeline.generate_image(automation["id"])

        assert updated["image_url"] == fake_db.get("automations", automation["id"])["image_url"]
        (bucket, path), = fake_db.storage.files.keys()
        assert bucket == settings.image_bucket
        assert path.startswith(f"automation-{automation['id']}-")
        image_prompt_call = fake_llm.calls[0]
        assert "Deal alerts" in image_prompt_call[1]
        assert image_prompt_call[3]["temperature"] == 0.8

    def test_missing_prompt_raises(self, fake_db, pipeline, users):
        automation = seed_automation(fake_db, users["user"])
        with pytest.raises(ImageGenerationError):
            pipeline.generate_image(automation["id"])

    def test_background_entry_swallows_errors(self, fake_db, pipeline, users):
        automation = seed_automation(fake_db, users["user"])
        run_image_generation(pipeline, automation["id"])
        assert fake_db.get("automations", automation["id"])["status"] == "completed"


class TestOneShotGeneration:
    def test_creates_completed_automation(self, fake_db, fake_llm, pipeline, owner):
        prompts = seed_prompts(fake_db, json_generation={
            "prompt_content": "Build a workflow for: {{workflow_description}}",
        })
        fake_db.seed("system_prompt_training_data", {
            "system_prompt_id": prompts["json_generation"]["id"],
            "title": "Example",
            "content": "A sample workflow",
        })
        fake_llm.workflow = {"nodes": [{"name": "Webhook"}], "connections": {}}

        automation = pipeline.generate_automation(owner, "Send me a daily weather email")

        assert automation["status"] == "completed"
        assert automation["generated_json"] == {"nodes": [{"name": "Webhook"}], "connections": {}}
        assert automation["title"].startswith("Automation ")
        assert automation["slug"].startswith("automation-")
        assert automation["prompt_id"] == prompts["json_generation"]["id"]
        assert automation["user_name"] == "Olive Owner"
        system_prompt = fake_llm.calls[0][2]
        assert system_prompt.startswith("Build a workflow for: Send me a daily weather email")
        assert "## Example\n\nA sample workflow" in system_prompt

    def test_model_failure_marks_failed(self, fake_db, fake_llm, pipeline, owner):
        seed_prompts(fake_db)
        fake_llm.workflow_error = OpenRouterError("Failed to generate workflow JSON after 2 attempts")

        with pytest.raises(HTTPException) as exc_info:
            pipeline.generate_automation(owner, "Send me a daily weather email")

        assert exc_info.value.status_code == 500
        detail = exc_info.value.detail
        assert detail["error"] == "Failed to generate automation"
        row = fake_db.get("automations", detail["automation_id"])
        assert row["status"] == "failed"

    def test_failed_final_update_marks_failed(self, fake_db, pipeline, owner):
        seed_prompts(fake_db)
        fake_db.fail_next("automations", "update", FakeAPIError("connection reset"))

        with pytest.raises(HTTPException) as exc_info:
            pipeline.generate_automation(owner, "Send me a daily weather email")

        detail = exc_info.value.detail
        assert exc_info.value.status_code == 500
        assert "connection reset" in detail["details"]
        row = fake_db.get("automations", detail["automation_id"])
        assert row["status"] == "failed"
        assert row["error_message"] == "connection reset"

    def test_missing_prompt(self, fake_db, pipeline, owner):
        with pytest.raises(HTTPException) as exc_info:
            pipeline.generate_automation(owner, "Send me a daily weather email")
        assert exc_info.value.status_code == 500
        assert fake_db.rows("automations") == []
