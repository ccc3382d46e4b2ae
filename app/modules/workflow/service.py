from supabase import Client
from fastapi import HTTPException
from app.config.prompts_config import WORKFLOW_VALIDATION_PROMPT, SELECTABLE_TOOL_CATEGORIES
from app.llm.openrouter_client import OpenRouterClient
from app.llm.errors import OpenRouterError
from app.modules.system_prompts.service import SystemPromptService
from app.modules.tools.service import ToolService
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)


class WorkflowValidationService:
    def __init__(self, supabase: Client, llm: OpenRouterClient):
        self.supabase = supabase
        self.llm = llm
        self.prompts = SystemPromptService(supabase)
        self.tools = ToolService(supabase)

    def validate(self, workflow_description: str) -> Dict[str, Any]:
        """Ask the model whether the description is automatable and attach tool choices"""
        prompt = self.prompts.get_active_by_name(WORKFLOW_VALIDATION_PROMPT)
        if not prompt:
            logger.error(f"Validation prompt '{WORKFLOW_VALIDATION_PROMPT}' not found or inactive")
            raise HTTPException(status_code=503, detail="Validation system prompt not found or is inactive.")

        try:
            result = self.llm.validate_workflow(workflow_description, prompt["prompt_content"], prompt.get("model_id"))
        except OpenRouterError as e:
            logger.error(f"Workflow validation failed: {e}")
            raise HTTPException(status_code=500, detail="An unexpected error occurred.")

        self.attach_available_tools(result)
        return result

    def attach_available_tools(self, result: Dict[str, Any]) -> None:
        steps = [s for s in result.get("steps") or [] if isinstance(s, dict)]
        needs_tools = [s for s in steps if s.get("tool_category") in SELECTABLE_TOOL_CATEGORIES]
        if not needs_tools:
            return

        grouped = self.tools.tools_by_category(SELECTABLE_TOOL_CATEGORIES)
        for step in needs_tools:
            if step["tool_category"] in grouped:
                step["available_tools"] = grouped[step["tool_category"]]
