from pydantic import BaseModel
from typing import Optional


class ToolCreate(BaseModel):
    name: Optional[str] = None
    category_id: Optional[str] = None


class ToolResponse(BaseModel):
    id: str
    name: str
    logo_url: Optional[str] = None

    class Config:
        from_attributes = True


class ToolCategoryResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
