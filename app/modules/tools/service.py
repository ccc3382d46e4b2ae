from supabase import Client
from fastapi import HTTPException
from app.modules.tools.schemas import ToolCreate
from typing import Any, Dict, List
import logging

logger = logging.getLogger(__name__)


class ToolService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_tools(self) -> List[Dict[str, Any]]:
        """Active tools ordered by name"""
        try:
            result = self.supabase.table("tools")\
                .select("id, name, logo_url")\
                .eq("is_active", True)\
                .order("name")\
                .execute()
            return result.data or []
        except Exception as e:
            logger.error(f"Error fetching tools: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch tools")

    def list_categories(self) -> List[Dict[str, Any]]:
        try:
            result = self.supabase.table("tool_categories")\
                .select("*")\
                .order("name")\
                .execute()
            return result.data or []
        except Exception as e:
            logger.error(f"Error fetching tool categories: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch tool categories")

    def tools_by_category(self, category_names: List[str]) -> Dict[str, List[Dict[str, Any]]]:
        """Active tools grouped by category name: {category: [{name, logo_url}]}"""
        categories = self.supabase.table("tool_categories")\
            .select("id, name")\
            .in_("name", category_names)\
            .execute()
        names_by_id = {c["id"]: c["name"] for c in categories.data or []}
        if not names_by_id:
            return {}

        tools = self.supabase.table("tools")\
            .select("name, logo_url, category_id")\
            .in_("category_id", list(names_by_id.keys()))\
            .eq("is_active", True)\
            .execute()

        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for tool in tools.data or []:
            category = names_by_id.get(tool.get("category_id"))
            if category:
                grouped.setdefault(category, []).append({"name": tool["name"], "logo_url": tool.get("logo_url")})
        return grouped

    def create_tool(self, tool_data: ToolCreate) -> Dict[str, Any]:
        name = (tool_data.name or "").strip()
        if not name or not tool_data.category_id:
            raise HTTPException(status_code=400, detail="Missing required fields: name and category_id")

        try:
            existing = self.supabase.table("tools")\
                .select("id")\
                .eq("name", name)\
                .eq("category_id", tool_data.category_id)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=409, detail="Tool already exists in this category")

            result = self.supabase.table("tools").insert({
                "name": name,
                "category_id": tool_data.category_id,
                "is_active": True,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add new tool")
            logger.info(f"Tool created: {name}")
            return result.data[0]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error inserting new tool: {e}")
            raise HTTPException(status_code=500, detail="Failed to add new tool")
