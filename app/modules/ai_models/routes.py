from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.llm.openrouter_client import OpenRouterClient, get_openrouter_client
from app.llm.errors import LLMError
from app.modules.ai_models.schemas import (
    AIModelCreate, AIModelListResponse, AIModelCreateResponse, CreditsResponse
)
from app.modules.ai_models.service import AIModelService
from app.core.dependencies import require_admin
from supabase import Client
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin: models"])


def get_optional_llm() -> Optional[OpenRouterClient]:
    """OpenRouter client, or None when no API key is configured"""
    try:
        return get_openrouter_client()
    except LLMError as e:
        logger.warning(f"OpenRouter client unavailable: {e}")
        return None


def get_ai_model_service(
    supabase: Client = Depends(get_supabase),
    llm: Optional[OpenRouterClient] = Depends(get_optional_llm)
) -> AIModelService:
    return AIModelService(supabase, llm)


@router.get("/models", response_model=AIModelListResponse)
def list_models(
    active: Optional[bool] = None,
    sync: bool = False,
    user_data: Dict = Depends(require_admin),
    service: AIModelService = Depends(get_ai_model_service)
):
    """List models; sync=true refreshes the table from OpenRouter first"""
    if sync:
        service.sync_from_openrouter()
    return {"models": service.list_models(is_active=active)}


@router.post("/models", response_model=AIModelCreateResponse, status_code=201)
def create_model(
    model_data: AIModelCreate,
    user_data: Dict = Depends(require_admin),
    service: AIModelService = Depends(get_ai_model_service)
):
    model, is_working = service.create_model(model_data)
    return {"model": model, "test_result": "working" if is_working else "unknown"}


@router.get("/credits", response_model=CreditsResponse)
def get_credits(
    user_data: Dict = Depends(require_admin),
    service: AIModelService = Depends(get_ai_model_service)
):
    """Usage and limit of the configured OpenRouter key"""
    return {"credits": service.get_credits()}
