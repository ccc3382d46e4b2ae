from pydantic import BaseModel, Field
from typing import Any, Dict


class WorkflowValidateRequest(BaseModel):
    workflow_description: str = Field(..., min_length=1)


class WorkflowValidateResponse(BaseModel):
    # Model output passes through; missing required fields are defaulted and
    # steps in selectable tool categories gain available_tools
    validation: Dict[str, Any]
