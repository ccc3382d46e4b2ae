from fastapi import APIRouter, Depends, Query
from app.database.supabase_client import get_supabase
from app.modules.system_prompts.schemas import (
    SystemPromptCreate, SystemPromptUpdate, SystemPromptListResponse, SystemPromptSingleResponse,
    SystemPromptUpdateResponse, SystemPromptDeleteResponse, SystemPromptPreviewResponse,
    SystemPromptVersionResponse, TrainingDataCreate, TrainingDataUpdate, TrainingDataResponse
)
from app.modules.system_prompts.service import SystemPromptService
from app.core.dependencies import require_admin
from supabase import Client
from typing import Dict, List, Optional

router = APIRouter(prefix="/admin/system-prompts", tags=["admin: system prompts"])


def get_system_prompt_service(supabase: Client = Depends(get_supabase)) -> SystemPromptService:
    return SystemPromptService(supabase)


@router.get("", response_model=SystemPromptListResponse)
async def list_system_prompts(
    category: Optional[str] = None,
    active: Optional[bool] = None,
    user_data: Dict = Depends(require_admin),
    service: SystemPromptService = Depends(get_system_prompt_service)
):
    """List system prompts, optionally filtered by category and active flag"""
    return {"prompts": service.list_prompts(category=category, is_active=active)}


@router.post("", response_model=SystemPromptSingleResponse, status_code=201)
async def create_system_prompt(
    prompt_data: SystemPromptCreate,
    user_data: Dict = Depends(require_admin),
    service: SystemPromptService = Depends(get_system_prompt_service)
):
    return {"prompt": service.create_prompt(prompt_data, user_data["id"])}


@router.get("/{prompt_id}", response_model=SystemPromptSingleResponse)
async def get_system_prompt(
    prompt_id: str,
    user_data: Dict = Depends(require_admin),
    service: SystemPromptService = Depends(get_system_prompt_service)
):
    return {"prompt": service.get_prompt(prompt_id)}


@router.patch("/{prompt_id}", response_model=SystemPromptUpdateResponse)
async def update_system_prompt(
    prompt_id: str,
    prompt_data: SystemPromptUpdate,
    user_data: Dict = Depends(require_admin),
    service: SystemPromptService = Depends(get_system_prompt_service)
):
    """Partial update; name/content/category changes archive the previous version"""
    prompt, version_created = service.update_prompt(prompt_id, prompt_data)
    return {"prompt": prompt, "version_created": version_created}


@router.delete("/{prompt_id}", response_model=SystemPromptDeleteResponse)
async def delete_system_prompt(
    prompt_id: str,
    user_data: Dict = Depends(require_admin),
    service: SystemPromptService = Depends(get_system_prompt_service)
):
    deleted = service.delete_prompt(prompt_id)
    return {"message": "System prompt deleted successfully", "deleted_prompt": deleted}


@router.get("/{prompt_id}/versions", response_model=List[SystemPromptVersionResponse])
async def list_system_prompt_versions(
    prompt_id: str,
    user_data: Dict = Depends(require_admin),
    service: SystemPromptService = Depends(get_system_prompt_service)
):
    return service.list_versions(prompt_id)


@router.get("/{prompt_id}/preview", response_model=SystemPromptPreviewResponse)
async def preview_system_prompt(
    prompt_id: str,
    completion_tokens: int = Query(1000, ge=0),
    user_data: Dict = Depends(require_admin),
    service: SystemPromptService = Depends(get_system_prompt_service)
):
    """Prompt joined with its training data, variables and estimated token cost"""
    return service.preview_prompt(prompt_id, completion_tokens)


@router.get("/{prompt_id}/training-data", response_model=List[TrainingDataResponse])
async def list_training_data(
    prompt_id: str,
    user_data: Dict = Depends(require_admin),
    service: SystemPromptService = Depends(get_system_prompt_service)
):
    return service.list_training_data(prompt_id)


@router.post("/{prompt_id}/training-data", response_model=TrainingDataResponse, status_code=201)
async def create_training_data(
    prompt_id: str,
    data: TrainingDataCreate,
    user_data: Dict = Depends(require_admin),
    service: SystemPromptService = Depends(get_system_prompt_service)
):
    return service.create_training_data(prompt_id, data)


@router.get("/{prompt_id}/training-data/{training_id}", response_model=TrainingDataResponse)
async def get_training_data(
    prompt_id: str,
    training_id: str,
    user_data: Dict = Depends(require_admin),
    service: SystemPromptService = Depends(get_system_prompt_service)
):
    return service.get_training_data(prompt_id, training_id)


@router.patch("/{prompt_id}/training-data/{training_id}", response_model=TrainingDataResponse)
async def update_training_data(
    prompt_id: str,
    training_id: str,
    data: TrainingDataUpdate,
    user_data: Dict = Depends(require_admin),
    service: SystemPromptService = Depends(get_system_prompt_service)
):
    return service.update_training_data(prompt_id, training_id, data)


@router.delete("/{prompt_id}/training-data/{training_id}", status_code=204)
async def delete_training_data(
    prompt_id: str,
    training_id: str,
    user_data: Dict = Depends(require_admin),
    service: SystemPromptService = Depends(get_system_prompt_service)
):
    service.delete_training_data(prompt_id, training_id)
    return None
