from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List
from datetime import datetime

AUTOMATION_STATUSES = [
    "pending",
    "generating",
    "generating_workflow",
    "generating_guide",
    "completed",
    "failed",
]


class AutomationCreate(BaseModel):
    userInput: str = Field(..., min_length=10, max_length=5000)
    # step number -> tool name, e.g. {"1": "Gmail", "2": "Salesforce"}
    selectedTools: Dict[str, str] = {}


class AutomationCreateResponse(BaseModel):
    automationId: str


class GenerateMetadataRequest(BaseModel):
    userInput: str = Field(..., min_length=10, max_length=5000)
    selectedTools: Dict[str, str] = {}


class GenerateMetadataResponse(BaseModel):
    slug: str


class GenerateAutomationRequest(BaseModel):
    workflow_description: str


class AutomationResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    user_input: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    slug: Optional[str] = None
    tags: Optional[List[str]] = None
    complexity: Optional[str] = None
    estimated_time_hours: Optional[float] = None
    generated_json: Optional[Any] = None
    automation_guide: Optional[str] = None
    prompt_id: Optional[str] = None
    prompt_version: Optional[int] = None
    image_url: Optional[str] = None
    status: str
    error_message: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ToolSummary(BaseModel):
    id: str
    name: str
    logo_url: Optional[str] = None


class AutomationDetailsResponse(AutomationResponse):
    tools: List[ToolSummary] = []
    creator_rank: Optional[int] = None


class AutomationGenerateResponse(BaseModel):
    success: bool
    automation: AutomationResponse


class AutomationImageResponse(BaseModel):
    success: bool
    image_url: str
    automation: AutomationResponse


class GenerateGuideResponse(BaseModel):
    message: str
    automation_id: str
    prompt_verified: bool


class AutomationStatusResponse(BaseModel):
    id: str
    status: str
    has_content: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    image_url: Optional[str] = None
    description: Optional[str] = None


class SlugResolveResponse(BaseModel):
    automationId: str
    slug: Optional[str] = None


class AutomationUser(BaseModel):
    id: Optional[str] = None
    email: Optional[str] = None
    name: str
    avatar_url: Optional[str] = None


class AutomationListItem(BaseModel):
    id: str
    title: str
    description: str
    slug: Optional[str] = None
    status: str
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: AutomationUser


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class AutomationListResponse(BaseModel):
    automations: List[AutomationListItem]
    pagination: Pagination
