from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from uuid import UUID


class PendingAutomationCreate(BaseModel):
    userInput: str = Field(..., min_length=10, max_length=5000)
    selectedTools: Dict[str, str] = {}
    validationResult: Optional[Any] = None


class PendingAutomationCreateResponse(BaseModel):
    pendingAutomationId: str


class ClaimAutomationRequest(BaseModel):
    pendingAutomationId: UUID


class ClaimAutomationResponse(BaseModel):
    automationId: str
    slug: str


class CleanupResponse(BaseModel):
    message: str
    deleted: int
