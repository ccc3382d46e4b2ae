from pydantic import BaseModel
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime


class AIModelCreate(BaseModel):
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    context_length: Optional[int] = None
    pricing_prompt: Optional[float] = None
    pricing_completion: Optional[float] = None
    is_active: bool = True
    supports_function_calling: bool = False
    supports_streaming: bool = True


class AIModelResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    context_length: Optional[int] = None
    pricing_prompt: Optional[float] = None
    pricing_completion: Optional[float] = None
    is_active: bool = True
    supports_function_calling: bool = False
    supports_streaming: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AIModelListResponse(BaseModel):
    models: List[AIModelResponse]


class AIModelCreateResponse(BaseModel):
    model: AIModelResponse
    test_result: Literal["working", "unknown"]


class CreditsResponse(BaseModel):
    credits: Optional[Dict[str, Any]] = None
