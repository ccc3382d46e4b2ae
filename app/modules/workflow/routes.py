from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.llm.openrouter_client import OpenRouterClient, get_openrouter_client
from app.modules.workflow.schemas import WorkflowValidateRequest, WorkflowValidateResponse
from app.modules.workflow.service import WorkflowValidationService
from supabase import Client

router = APIRouter(prefix="/workflow", tags=["workflow"])


def get_workflow_service(
    supabase: Client = Depends(get_supabase),
    llm: OpenRouterClient = Depends(get_openrouter_client)
) -> WorkflowValidationService:
    return WorkflowValidationService(supabase, llm)


@router.post("/validate", response_model=WorkflowValidateResponse)
def validate_workflow(
    request_data: WorkflowValidateRequest,
    service: WorkflowValidationService = Depends(get_workflow_service)
):
    """Public: check a workflow description before the visitor signs in"""
    return {"validation": service.validate(request_data.workflow_description)}
