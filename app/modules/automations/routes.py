from fastapi import APIRouter, Depends, HTTPException, BackgroundTasks, Query
from app.database.supabase_client import get_supabase, get_service_supabase
from app.config.prompts_config import GUIDE_GENERATION_PROMPT
from app.llm.errors import LLMError
from app.modules.automations.schemas import (
    AutomationCreate, AutomationCreateResponse, GenerateMetadataRequest, GenerateMetadataResponse,
    GenerateAutomationRequest, AutomationGenerateResponse, AutomationImageResponse,
    GenerateGuideResponse, AutomationStatusResponse, AutomationResponse, AutomationDetailsResponse,
    AutomationListResponse, SlugResolveResponse
)
from app.modules.automations.service import AutomationService
from app.modules.automations.image_storage import ImageStorage
from app.modules.automations.generation_worker import (
    GenerationPipeline, run_full_pipeline, run_remaining_pipeline,
    run_guide_regeneration, run_image_generation
)
from app.modules.automations import pipeline_registry
from app.core.dependencies import get_current_user_id
from supabase import Client
from typing import Dict, List
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/automations", tags=["automations"])


def get_automation_service(supabase: Client = Depends(get_supabase)) -> AutomationService:
    return AutomationService(supabase)


def get_generation_pipeline(supabase: Client = Depends(get_service_supabase)) -> GenerationPipeline:
    """Pipeline on the service-role client so background status updates bypass RLS"""
    return GenerationPipeline(supabase)


def get_image_storage(supabase: Client = Depends(get_service_supabase)) -> ImageStorage:
    return ImageStorage(supabase)


@router.get("", response_model=AutomationListResponse)
async def list_automations(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: AutomationService = Depends(get_automation_service)
):
    """Public listing of completed automations"""
    return service.list_completed(page=page, limit=limit)


@router.post("", response_model=AutomationCreateResponse, status_code=202)
async def create_automation(
    automation_data: AutomationCreate,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(get_current_user_id),
    service: AutomationService = Depends(get_automation_service),
    pipeline: GenerationPipeline = Depends(get_generation_pipeline)
):
    """Create the record and run the whole generation pipeline in the background"""
    automation = service.create_automation(user_data, automation_data.userInput, status="generating")
    background_tasks.add_task(
        run_full_pipeline,
        pipeline,
        automation["id"],
        automation_data.userInput,
        automation_data.selectedTools
    )
    return {"automationId": automation["id"]}


@router.get("/mine", response_model=List[AutomationResponse])
async def list_my_automations(
    user_data: Dict = Depends(get_current_user_id),
    service: AutomationService = Depends(get_automation_service)
):
    return service.list_for_user(user_data["id"])


@router.post("/generate", response_model=AutomationGenerateResponse)
def generate_automation(
    request_data: GenerateAutomationRequest,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(get_current_user_id),
    pipeline: GenerationPipeline = Depends(get_generation_pipeline)
):
    """One-shot workflow generation; the cover image is generated afterwards in the background"""
    if not request_data.workflow_description or not request_data.workflow_description.strip():
        raise HTTPException(status_code=400, detail="Workflow description is required")

    automation = pipeline.generate_automation(user_data, request_data.workflow_description)
    background_tasks.add_task(run_image_generation, pipeline, automation["id"])
    return {"success": True, "automation": automation}


@router.get("/by-slug/{slug}", response_model=SlugResolveResponse)
async def get_automation_by_slug(
    slug: str,
    service: AutomationService = Depends(get_automation_service)
):
    automation = service.get_by_slug(slug)
    return {"automationId": automation["id"], "slug": slug}


@router.get("/resolve/{identifier}", response_model=SlugResolveResponse)
async def resolve_automation_identifier(
    identifier: str,
    service: AutomationService = Depends(get_automation_service)
):
    """Accepts an automation UUID or slug and returns the automation id"""
    return service.resolve_identifier(identifier)


@router.get("/{automation_id}", response_model=AutomationResponse)
async def get_automation(
    automation_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: AutomationService = Depends(get_automation_service)
):
    return service.get_owned_automation(automation_id, user_data)


@router.delete("/{automation_id}", status_code=204)
def delete_automation(
    automation_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: AutomationService = Depends(get_automation_service),
    storage: ImageStorage = Depends(get_image_storage)
):
    """Delete an automation (owner or admin)"""
    automation = service.get_owned_automation(automation_id, user_data, allow_admin=True)
    service.delete_automation(automation_id)
    if automation.get("image_url"):
        storage.delete_image(automation["image_url"])
    return None


@router.get("/{automation_id}/status", response_model=AutomationStatusResponse)
async def get_automation_status(
    automation_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: AutomationService = Depends(get_automation_service)
):
    """Polled by the client while the pipeline runs"""
    return service.get_status(automation_id, user_data)


@router.get("/{automation_id}/details", response_model=AutomationDetailsResponse)
async def get_automation_details(
    automation_id: str,
    service: AutomationService = Depends(get_automation_service),
    admin_client: Client = Depends(get_service_supabase)
):
    """Public detail page data with tools, creator profile and rank"""
    return service.get_details(automation_id, admin_client)


@router.post("/{automation_id}/generate-metadata", response_model=GenerateMetadataResponse)
def generate_metadata(
    automation_id: str,
    request_data: GenerateMetadataRequest,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(get_current_user_id),
    service: AutomationService = Depends(get_automation_service),
    pipeline: GenerationPipeline = Depends(get_generation_pipeline)
):
    """Generate metadata now and queue workflow, guide and image generation"""
    service.get_owned_automation(automation_id, user_data)
    try:
        slug = pipeline.generate_metadata(automation_id, request_data.userInput, request_data.selectedTools)
    except Exception as e:
        logger.error(f"Metadata generation failed for automation {automation_id}: {e}")
        pipeline.mark_failed(automation_id, f"Metadata generation failed: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to generate metadata: {e}")

    background_tasks.add_task(
        run_remaining_pipeline,
        pipeline,
        automation_id,
        request_data.userInput,
        request_data.selectedTools
    )
    return {"slug": slug}


@router.post("/{automation_id}/generate-image", response_model=AutomationImageResponse)
def generate_image(
    automation_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: AutomationService = Depends(get_automation_service),
    pipeline: GenerationPipeline = Depends(get_generation_pipeline)
):
    service.get_owned_automation(automation_id, user_data)
    try:
        automation = pipeline.generate_image(automation_id)
    except LLMError as e:
        logger.error(f"Image generation failed for automation {automation_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return {"success": True, "image_url": automation["image_url"], "automation": automation}


@router.post("/{automation_id}/generate-guide", response_model=GenerateGuideResponse)
async def generate_guide(
    automation_id: str,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(get_current_user_id),
    service: AutomationService = Depends(get_automation_service),
    pipeline: GenerationPipeline = Depends(get_generation_pipeline)
):
    """Regenerate the setup guide of a completed automation"""
    automation = service.get_owned_automation(automation_id, user_data, allow_admin=True)
    if automation["status"] != "completed":
        raise HTTPException(status_code=400, detail="Automation must be completed before generating guide")

    prompt = pipeline.prompts.get_latest_by_name(GUIDE_GENERATION_PROMPT)
    if not prompt:
        raise HTTPException(
            status_code=404,
            detail=f"{GUIDE_GENERATION_PROMPT} prompt not found. Create it in the admin interface with this exact name."
        )
    if not prompt.get("is_active"):
        raise HTTPException(
            status_code=400,
            detail=f"{GUIDE_GENERATION_PROMPT} prompt exists but is not active"
        )

    running_for = pipeline_registry.running_for(automation_id)
    if running_for is not None:
        raise HTTPException(
            status_code=409,
            detail=f"Generation already running for this automation ({int(running_for)}s)"
        )

    background_tasks.add_task(run_guide_regeneration, pipeline, automation_id)
    return {
        "message": "Automation guide generation started",
        "automation_id": automation_id,
        "prompt_verified": True,
    }
