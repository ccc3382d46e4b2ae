from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.tools.schemas import ToolCreate, ToolResponse, ToolCategoryResponse
from app.modules.tools.service import ToolService
from app.core.dependencies import get_current_user_id
from supabase import Client
from typing import Dict, List

router = APIRouter(prefix="/tools", tags=["tools"])


def get_tool_service(supabase: Client = Depends(get_supabase)) -> ToolService:
    return ToolService(supabase)


@router.get("", response_model=List[ToolResponse])
async def list_tools(service: ToolService = Depends(get_tool_service)):
    return service.list_tools()


@router.get("/categories", response_model=List[ToolCategoryResponse])
async def list_tool_categories(service: ToolService = Depends(get_tool_service)):
    return service.list_categories()


@router.post("", response_model=ToolResponse, status_code=201)
async def create_tool(
    tool_data: ToolCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: ToolService = Depends(get_tool_service)
):
    """Add a tool to a category (any signed-in user)"""
    return service.create_tool(tool_data)
