from fastapi import APIRouter, Depends, HTTPException, BackgroundTasks
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.pending_automations.schemas import (
    PendingAutomationCreate, PendingAutomationCreateResponse,
    ClaimAutomationRequest, ClaimAutomationResponse, CleanupResponse
)
from app.modules.pending_automations.service import PendingAutomationService
from app.modules.automations.service import AutomationService
from app.modules.automations.generation_worker import GenerationPipeline, run_remaining_pipeline
from app.modules.automations.routes import get_automation_service, get_generation_pipeline
from app.core.dependencies import get_current_user_id, require_admin
from supabase import Client
from typing import Dict
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/automations", tags=["pending automations"])
admin_router = APIRouter(prefix="/admin", tags=["admin"])


def get_pending_service(supabase: Client = Depends(get_supabase)) -> PendingAutomationService:
    return PendingAutomationService(supabase)


def get_admin_pending_service(supabase: Client = Depends(get_service_supabase)) -> PendingAutomationService:
    return PendingAutomationService(supabase)


@router.post("/pending", response_model=PendingAutomationCreateResponse)
async def create_pending_automation(
    pending_data: PendingAutomationCreate,
    service: PendingAutomationService = Depends(get_pending_service)
):
    """Keep an anonymous visitor's validated request until they sign in"""
    return {"pendingAutomationId": service.create_pending(pending_data)}


@router.post("/claim", response_model=ClaimAutomationResponse)
def claim_pending_automation(
    claim_data: ClaimAutomationRequest,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(get_current_user_id),
    service: PendingAutomationService = Depends(get_pending_service),
    automation_service: AutomationService = Depends(get_automation_service),
    pipeline: GenerationPipeline = Depends(get_generation_pipeline)
):
    """Turn a pending request into an automation owned by the caller"""
    pending_id = str(claim_data.pendingAutomationId)
    pending = service.get_unexpired(pending_id)
    selected_tools = pending.get("selected_tools") or {}

    automation = automation_service.create_automation(user_data, pending["user_input"], status="generating")
    service.delete_pending(pending_id)

    try:
        slug = pipeline.generate_metadata(automation["id"], pending["user_input"], selected_tools)
    except Exception as e:
        logger.error(f"Metadata generation failed for claimed automation {automation['id']}: {e}")
        pipeline.mark_failed(automation["id"], f"Metadata generation failed: {e}")
        raise HTTPException(status_code=500, detail="An unexpected error occurred.")

    background_tasks.add_task(
        run_remaining_pipeline, pipeline, automation["id"], pending["user_input"], selected_tools
    )
    return {"automationId": automation["id"], "slug": slug}


@admin_router.post("/cleanup-pending", response_model=CleanupResponse)
async def cleanup_pending_automations(
    user_data: Dict = Depends(require_admin),
    service: PendingAutomationService = Depends(get_admin_pending_service)
):
    try:
        deleted = service.cleanup_expired()
    except Exception as e:
        logger.error(f"Error cleaning up pending automations: {e}")
        raise HTTPException(status_code=500, detail="Cleanup failed")
    return {"message": "Pending automations cleaned up successfully", "deleted": deleted}
