from pydantic import BaseModel
from typing import Optional, Dict, Any, List
from datetime import datetime


class SystemPromptCreate(BaseModel):
    name: str
    description: Optional[str] = None
    category: str = "custom"
    prompt_content: str
    variables: Dict[str, Any] = {}
    model_id: Optional[str] = None
    is_active: bool = True


class SystemPromptUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    prompt_content: Optional[str] = None
    variables: Optional[Dict[str, Any]] = None
    model_id: Optional[str] = None
    is_active: Optional[bool] = None


class SystemPromptResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    category: str
    prompt_content: str
    variables: Optional[Dict[str, Any]] = None
    model_id: Optional[str] = None
    is_active: bool
    version: int = 1
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SystemPromptListResponse(BaseModel):
    prompts: List[SystemPromptResponse]


class SystemPromptSingleResponse(BaseModel):
    prompt: SystemPromptResponse


class SystemPromptUpdateResponse(BaseModel):
    prompt: SystemPromptResponse
    version_created: bool


class SystemPromptDeleteResponse(BaseModel):
    message: str
    deleted_prompt: Dict[str, Any]


class SystemPromptPreviewResponse(BaseModel):
    prompt_id: str
    full_prompt: str
    variables: List[str]
    training_data_count: int
    estimated_tokens: int
    estimated_cost: float


class SystemPromptVersionResponse(BaseModel):
    id: str
    original_prompt_id: str
    version_number: int
    name: str
    description: Optional[str] = None
    category: str
    prompt_content: str
    variables: Optional[Dict[str, Any]] = None
    is_active: bool
    archived_at: Optional[datetime] = None


class TrainingDataCreate(BaseModel):
    title: str
    content: str


class TrainingDataUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None


class TrainingDataResponse(BaseModel):
    id: str
    system_prompt_id: str
    title: str
    content: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
