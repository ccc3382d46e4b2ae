"""
Generation pipeline for automations.

metadata -> workflow JSON -> setup guide -> cover image

Steps run in-process: the metadata step may run inside a request, the rest are
queued with FastAPI BackgroundTasks through the run_* entry points below.
The run_* functions never raise. A failure in metadata, workflow or guide marks
the automation failed. Image failures are only logged.
"""
import json
import time
import logging
from datetime import date
from typing import Any, Dict, Optional

from fastapi import HTTPException
from supabase import Client

from app.config import settings
from app.config.prompts_config import (
    METADATA_GENERATION_PROMPT,
    JSON_GENERATION_PROMPT,
    GUIDE_GENERATION_PROMPT,
)
from app.llm.errors import ImageGenerationError
from app.llm.openrouter_client import OpenRouterClient, get_openrouter_client
from app.llm.image_client import ImageClient, get_image_client
from app.modules.automations import pipeline_registry
from app.modules.automations.image_storage import ImageStorage
from app.modules.automations.service import AutomationService, unique_tool_names
from app.modules.system_prompts.prompt_utils import replace_prompt_variables
from app.modules.system_prompts.service import SystemPromptService
from app.utils.json_extract import extract_json
from app.utils.slugify import generate_slug

logger = logging.getLogger(__name__)

GUIDE_DIFFICULTIES = ("easy", "medium", "hard")
GUIDE_MAX_TOKENS = 4000
IMAGE_PROMPT_MAX_TOKENS = 300
IMAGE_PROMPT_TEMPERATURE = 0.8
DEFAULT_WORKFLOW_SUMMARY = "Automated workflow with various steps and processes"


class GenerationError(Exception):
    """A pipeline step could not produce its output."""


def normalize_guide(guide: Any) -> Dict[str, Any]:
    """Coerce a model-produced guide into the stored guide shape"""
    if not isinstance(guide, dict):
        raise GenerationError("Guide response is not a JSON object")

    difficulty = str(guide.get("difficulty") or "").lower()
    steps = []
    for index, raw in enumerate(guide.get("steps") or [], start=1):
        if not isinstance(raw, dict):
            continue
        setup = raw.get("setup") or []
        if isinstance(setup, str):
            setup = [setup]
        steps.append({
            "step": raw.get("step") or index,
            "name": raw.get("name") or f"Step {index}",
            "node_type": raw.get("node_type") or "",
            "function": raw.get("function") or "",
            "setup": [str(item) for item in setup],
        })

    return {
        "setup time": guide.get("setup time") or guide.get("setup_time") or "",
        "difficulty": difficulty if difficulty in GUIDE_DIFFICULTIES else "medium",
        "benefits": [str(b) for b in guide.get("benefits") or []],
        "requirements": [str(r) for r in guide.get("requirements") or []],
        "steps": steps,
    }


class GenerationPipeline:
    def __init__(
        self,
        supabase: Client,
        llm: Optional[OpenRouterClient] = None,
        image_client: Optional[ImageClient] = None,
        storage: Optional[ImageStorage] = None
    ):
        self.supabase = supabase
        self.automations = AutomationService(supabase)
        self.prompts = SystemPromptService(supabase)
        self._llm = llm
        self._image_client = image_client
        self._storage = storage

    # Provider clients are resolved on first use so a missing API key only
    # fails the step that needs it
    @property
    def llm(self) -> OpenRouterClient:
        if self._llm is None:
            self._llm = get_openrouter_client()
        return self._llm

    @property
    def image_client(self) -> ImageClient:
        if self._image_client is None:
            self._image_client = get_image_client()
        return self._image_client

    @property
    def storage(self) -> ImageStorage:
        if self._storage is None:
            self._storage = ImageStorage(self.supabase)
        return self._storage

    def _latest_prompt(self, name: str) -> Dict[str, Any]:
        prompt = self.prompts.get_latest_by_name(name)
        if not prompt:
            raise GenerationError(f"Could not find system prompt: {name}")
        return prompt

    def mark_failed(self, automation_id: str, error_message: str) -> None:
        try:
            self.automations.update_status(automation_id, "failed", error_message=error_message)
        except Exception as e:
            logger.error(f"Failed to set automation {automation_id} status to failed: {e}")

    def generate_metadata(self, automation_id: str, user_input: str, selected_tools: Dict[str, str]) -> str:
        """Title, description, tags and slug. Returns the slug."""
        logger.info(f"Generating metadata for automation {automation_id}")
        prompt = self._latest_prompt(METADATA_GENERATION_PROMPT)
        tools = unique_tool_names(selected_tools)
        prompt_text = replace_prompt_variables(prompt["prompt_content"], {
            "user_input": user_input,
            "tools": ", ".join(tools) or "None",
        })

        metadata = self.llm.generate_json(prompt_text, prompt.get("model_id"))
        if not isinstance(metadata, dict):
            raise GenerationError("Metadata response is not a JSON object")

        title = metadata.get("title") or "Untitled Automation"
        slug = generate_slug(title)
        self.automations.update_automation(automation_id, {
            "title": title,
            "description": metadata.get("description"),
            "tags": metadata.get("tags") or [],
            "complexity": metadata.get("complexity"),
            "estimated_time_hours": metadata.get("estimated_time_hours"),
            "slug": slug,
            "status": "generating_workflow",
        })
        logger.info(f"Metadata for automation {automation_id} saved (slug={slug})")
        return slug

    def generate_workflow(self, automation_id: str, user_input: str, selected_tools: Dict[str, str]) -> Dict[str, Any]:
        logger.info(f"Generating workflow for automation {automation_id}")
        prompt = self._latest_prompt(JSON_GENERATION_PROMPT)
        tools = unique_tool_names(selected_tools)
        message = (
            f"{prompt['prompt_content']}\n\n"
            f"User Input: {user_input}\n"
            f"Selected Tools: {', '.join(tools) or 'None'}"
        )

        response = self.llm.generate_text(message, prompt.get("model_id") or settings.default_model)
        generated_json = extract_json(response)
        if generated_json is None:
            raise GenerationError("AI returned invalid workflow JSON")

        automation = self.automations.update_automation(automation_id, {
            "generated_json": generated_json,
            "prompt_id": prompt["id"],
            "prompt_version": prompt.get("version"),
            "status": "generating_guide",
        })
        linked = self.automations.link_tools(automation_id, tools)
        logger.info(f"Workflow for automation {automation_id} saved ({linked} tools linked)")
        return automation

    def generate_guide(self, automation_id: str, final_status: str = "completed") -> Dict[str, Any]:
        logger.info(f"Generating setup guide for automation {automation_id}")
        automation = self.automations.get_automation(automation_id)
        prompt = self.prompts.get_active_by_name(GUIDE_GENERATION_PROMPT)
        if not prompt:
            raise GenerationError(f"Could not find active system prompt: {GUIDE_GENERATION_PROMPT}")

        prompt_text = replace_prompt_variables(prompt["prompt_content"], {
            "automation_title": automation.get("title") or "Automation Workflow",
            "automation_description": automation.get("description")
            or (automation.get("user_input") or "")[:200],
            "workflow_json": json.dumps(automation.get("generated_json") or {}, indent=2),
        })
        guide = normalize_guide(
            self.llm.generate_json(prompt_text, prompt.get("model_id"), max_tokens=GUIDE_MAX_TOKENS)
        )

        updated = self.automations.update_automation(automation_id, {
            "automation_guide": json.dumps(guide),
            "status": final_status,
        })
        logger.info(f"Setup guide for automation {automation_id} saved ({len(guide['steps'])} steps)")
        return updated

    def generate_image(self, automation_id: str) -> Dict[str, Any]:
        """Cover image for an automation. Returns the updated row."""
        automation = self.automations.get_automation(automation_id)
        prompt = self.prompts.get_active_by_category("image_generation")
        if not prompt:
            raise ImageGenerationError("Image generation prompt not available")

        generated = automation.get("generated_json")
        workflow_summary = (
            (generated.get("description") if isinstance(generated, dict) else None)
            or automation.get("description")
            or DEFAULT_WORKFLOW_SUMMARY
        )
        prompt_text = replace_prompt_variables(prompt["prompt_content"], {
            "automation_title": automation.get("title") or "Automation Workflow",
            "automation_description": automation.get("description")
            or (automation.get("user_input") or "")[:200],
            "workflow_summary": workflow_summary,
        })

        image_prompt = self.llm.complete(
            prompt_text,
            prompt.get("model_id"),
            temperature=IMAGE_PROMPT_TEMPERATURE,
            max_tokens=IMAGE_PROMPT_MAX_TOKENS,
        )
        if not image_prompt or not image_prompt.strip():
            raise ImageGenerationError("Failed to generate image prompt")

        content = self.image_client.generate_image(image_prompt.strip())
        file_name = f"automation-{automation_id}-{int(time.time() * 1000)}.png"
        image_url = self.storage.upload_image(file_name, content)
        logger.info(f"Image for automation {automation_id} stored at {image_url}")
        return self.automations.update_automation(automation_id, {"image_url": image_url})

    def generate_automation(self, user_data: Dict[str, Any], workflow_description: str) -> Dict[str, Any]:
        """
        One-shot generation: create the record and produce the workflow JSON in
        the request using the active json_generation prompt plus its training data.
        """
        prompt = self.prompts.get_active_by_category("json_generation")
        if not prompt:
            raise HTTPException(status_code=500, detail="JSON generation prompt not available")

        full_prompt = self.prompts.get_full_prompt_content(prompt)
        processed_prompt = replace_prompt_variables(full_prompt, {"workflow_description": workflow_description})
        model_id = prompt.get("model_id") or settings.default_model

        title = f"Automation {date.today().strftime('%m/%d/%Y')}"
        automation = self.automations.create_automation(
            user_data,
            workflow_description,
            status="generating",
            title=title,
            slug=generate_slug(title),
            prompt_id=prompt["id"],
            prompt_version=prompt.get("version"),
            generated_json={},
        )

        logger.info(
            f"Starting JSON generation for user {user_data['id']} with model {model_id} "
            f"(description {len(workflow_description)} chars, prompt {len(processed_prompt)} chars)"
        )
        try:
            generated_json = self.llm.generate_workflow_json(workflow_description, {}, processed_prompt, model_id)
            return self.automations.update_automation(automation["id"], {
                "generated_json": generated_json,
                "status": "completed",
            })
        except Exception as e:
            error_detail = e.detail if isinstance(e, HTTPException) else str(e)
            logger.error(f"Error generating automation {automation['id']}: {error_detail}")
            self.mark_failed(automation["id"], str(error_detail))
            raise HTTPException(status_code=500, detail={
                "error": "Failed to generate automation",
                "details": str(error_detail),
                "automation_id": automation["id"],
            })


def _run_registered(automation_id: str, label: str, steps) -> None:
    if not pipeline_registry.register(automation_id):
        logger.warning(f"{label} for automation {automation_id} skipped: a pipeline is already running")
        return
    try:
        steps()
    finally:
        pipeline_registry.unregister(automation_id)


def _image_best_effort(pipeline: GenerationPipeline, automation_id: str) -> None:
    try:
        pipeline.generate_image(automation_id)
    except Exception as e:
        logger.error(f"Image generation for automation {automation_id} failed: {e}")


def _workflow_guide_image(
    pipeline: GenerationPipeline,
    automation_id: str,
    user_input: str,
    selected_tools: Dict[str, str]
) -> None:
    try:
        pipeline.generate_workflow(automation_id, user_input, selected_tools)
    except Exception as e:
        logger.error(f"Error generating workflow for automation {automation_id}: {e}")
        pipeline.mark_failed(automation_id, f"Workflow generation failed: {e}")
        return
    try:
        pipeline.generate_guide(automation_id)
    except Exception as e:
        logger.error(f"Error generating guide for automation {automation_id}: {e}")
        pipeline.mark_failed(automation_id, f"Guide generation failed: {e}")
        return
    _image_best_effort(pipeline, automation_id)
    logger.info(f"Pipeline for automation {automation_id} completed")


def run_remaining_pipeline(
    pipeline: GenerationPipeline,
    automation_id: str,
    user_input: str,
    selected_tools: Dict[str, str]
) -> None:
    """Background entry after metadata: workflow, guide, then image"""
    _run_registered(
        automation_id,
        "Workflow generation",
        lambda: _workflow_guide_image(pipeline, automation_id, user_input, selected_tools),
    )


def run_full_pipeline(
    pipeline: GenerationPipeline,
    automation_id: str,
    user_input: str,
    selected_tools: Dict[str, str]
) -> None:
    """Background entry: metadata, then the remaining steps"""
    def steps():
        try:
            pipeline.generate_metadata(automation_id, user_input, selected_tools)
        except Exception as e:
            logger.error(f"Error generating metadata for automation {automation_id}: {e}")
            pipeline.mark_failed(automation_id, f"Metadata generation failed: {e}")
            return
        _workflow_guide_image(pipeline, automation_id, user_input, selected_tools)

    _run_registered(automation_id, "Automation generation", steps)


def run_guide_regeneration(pipeline: GenerationPipeline, automation_id: str) -> None:
    """
    Background entry for regenerating the guide of a completed automation.
    The automation stays completed on failure; only error_message is set.
    """
    def steps():
        try:
            pipeline.generate_guide(automation_id)
        except Exception as e:
            logger.error(f"Error regenerating guide for automation {automation_id}: {e}")
            try:
                pipeline.automations.update_automation(
                    automation_id, {"error_message": f"Guide generation failed: {e}"}
                )
            except Exception as update_error:
                logger.error(f"Failed to record guide error for automation {automation_id}: {update_error}")

    _run_registered(automation_id, "Guide regeneration", steps)


def run_image_generation(pipeline: GenerationPipeline, automation_id: str) -> None:
    """Background entry: best-effort cover image"""
    _image_best_effort(pipeline, automation_id)
