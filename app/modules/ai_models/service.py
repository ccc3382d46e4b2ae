from supabase import Client
from fastapi import HTTPException
from app.llm.openrouter_client import OpenRouterClient
from app.llm.errors import LLMError
from app.modules.ai_models.schemas import AIModelCreate
from typing import Any, Dict, List, Optional, Tuple
import re
import logging

logger = logging.getLogger(__name__)

MODEL_ID_RE = re.compile(r"^[a-z0-9-]+/[a-z0-9._-]+$", re.IGNORECASE)


def is_valid_model_id(model_id: Optional[str]) -> bool:
    """provider/model-name, e.g. anthropic/claude-3.5-sonnet"""
    return bool(model_id) and bool(MODEL_ID_RE.match(model_id))


def _price(value: Any) -> Optional[float]:
    try:
        return float(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def catalogue_entry_to_row(model: Dict[str, Any]) -> Dict[str, Any]:
    """Map an OpenRouter /models entry to an openrouter_models row"""
    pricing = model.get("pricing") or {}
    top_provider = model.get("top_provider") or {}
    return {
        "id": model["id"],
        "name": model.get("name") or model["id"],
        "description": model.get("description"),
        "context_length": model.get("context_length"),
        "pricing_prompt": _price(pricing.get("prompt")),
        "pricing_completion": _price(pricing.get("completion")),
        "supports_function_calling": bool(top_provider.get("supports_function_calling")),
        "supports_streaming": top_provider.get("supports_streaming") is not False,
    }


class AIModelService:
    def __init__(self, supabase: Client, llm: Optional[OpenRouterClient] = None):
        self.supabase = supabase
        self.llm = llm

    def sync_from_openrouter(self) -> int:
        """Upsert the OpenRouter catalogue. Failures are logged and leave existing rows untouched."""
        if self.llm is None:
            logger.warning("Model sync skipped: OpenRouter client not configured")
            return 0
        try:
            rows = [
                catalogue_entry_to_row(m)
                for m in self.llm.get_available_models()
                if is_valid_model_id(m.get("id"))
            ]
            if rows:
                self.supabase.table("openrouter_models").upsert(rows, on_conflict="id").execute()
            logger.info(f"Synced {len(rows)} model(s) from OpenRouter")
            return len(rows)
        except Exception as e:
            logger.error(f"Error syncing models from OpenRouter: {e}")
            return 0

    def list_models(self, is_active: Optional[bool] = None) -> List[Dict[str, Any]]:
        try:
            query = self.supabase.table("openrouter_models").select("*")
            if is_active is not None:
                query = query.eq("is_active", is_active)
            result = query.order("name").execute()
            return result.data or []
        except Exception as e:
            logger.error(f"Error fetching models: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch models")

    def create_model(self, model_data: AIModelCreate) -> Tuple[Dict[str, Any], bool]:
        """Insert a model after a connectivity probe. Returns (model, probe_succeeded)."""
        if not is_valid_model_id(model_data.id):
            raise HTTPException(
                status_code=400,
                detail="Invalid model ID format. Expected format: provider/model-name"
            )
        if not model_data.name or not model_data.name.strip():
            raise HTTPException(status_code=400, detail="Model name is required")

        existing = self.supabase.table("openrouter_models")\
            .select("id")\
            .eq("id", model_data.id)\
            .execute()
        if existing.data:
            raise HTTPException(status_code=409, detail="Model with this ID already exists")

        is_working = False
        if self.llm is not None:
            try:
                is_working = self.llm.test_model(model_data.id)
            except LLMError as e:
                logger.warning(f"Could not test model {model_data.id}: {e}")

        try:
            result = self.supabase.table("openrouter_models")\
                .insert({**model_data.model_dump(), "name": model_data.name.strip()})\
                .execute()
        except Exception as e:
            logger.error(f"Error creating model: {e}")
            raise HTTPException(status_code=500, detail="Failed to create model")
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to create model")
        return result.data[0], is_working

    def get_credits(self) -> Optional[Dict[str, Any]]:
        if self.llm is None:
            raise HTTPException(status_code=503, detail="OpenRouter API key is not configured")
        credits = self.llm.get_credits()
        if credits is None:
            raise HTTPException(status_code=502, detail="Failed to fetch OpenRouter credits")
        return credits.get("data", credits)
