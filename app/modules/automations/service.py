from supabase import Client
from fastapi import HTTPException
from app.modules.auth.service import display_name, avatar_url
from app.core.dependencies import check_automation_owner
from app.utils.identifier import is_uuid
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import math
import logging

logger = logging.getLogger(__name__)

LIST_DESCRIPTION_FALLBACK_CHARS = 150


def unique_tool_names(selected_tools: Optional[Dict[str, str]]) -> List[str]:
    """Distinct tool names from a step -> tool mapping, in step order"""
    names: List[str] = []
    for name in (selected_tools or {}).values():
        if name and name not in names:
            names.append(name)
    return names


def creator_fields(user_data: Dict[str, Any]) -> Dict[str, Any]:
    """Snapshot of the creator stored on the automation row"""
    return {
        "user_name": display_name(user_data),
        "user_email": user_data.get("email"),
        "user_avatar_url": avatar_url(user_data),
    }


def format_list_item(automation: Dict[str, Any]) -> Dict[str, Any]:
    """Public card shape used by the automations listing"""
    email = automation.get("user_email")
    user_input = automation.get("user_input") or ""
    return {
        "id": automation["id"],
        "title": automation.get("title") or "Untitled Automation",
        "description": automation.get("description")
        or user_input[:LIST_DESCRIPTION_FALLBACK_CHARS] + "...",
        "slug": automation.get("slug"),
        "status": automation["status"],
        "image_url": automation.get("image_url"),
        "created_at": automation.get("created_at"),
        "updated_at": automation.get("updated_at"),
        "user": {
            "id": automation.get("user_id"),
            "email": email,
            "name": automation.get("user_name")
            or (email.split("@")[0] if email else None)
            or "Unknown User",
            "avatar_url": automation.get("user_avatar_url"),
        },
    }


class AutomationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_automation(
        self,
        user_data: Dict[str, Any],
        user_input: str,
        status: str = "generating",
        **fields: Any
    ) -> Dict[str, Any]:
        """Insert an automation owned by the caller with the creator snapshot"""
        try:
            result = self.supabase.table("automations").insert({
                "user_id": user_data["id"],
                "user_input": user_input,
                "status": status,
                **creator_fields(user_data),
                **fields,
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create automation")
            logger.info(f"Automation {result.data[0]['id']} created for user {user_data['id']}")
            return result.data[0]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating automation record: {e}")
            raise HTTPException(status_code=500, detail="Failed to create automation")

    def get_automation(self, automation_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("automations")\
                .select("*")\
                .eq("id", automation_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching automation {automation_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch automation")
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Automation not found")
        return result.data

    def get_owned_automation(self, automation_id: str, user_data: Dict[str, Any], allow_admin: bool = False) -> Dict[str, Any]:
        """Automation visible to the caller; 404 for anyone but the owner (and admins when allowed)"""
        automation = self.get_automation(automation_id)
        check_automation_owner(automation, user_data, allow_admin=allow_admin)
        return automation

    def update_automation(self, automation_id: str, update_data: Dict[str, Any]) -> Dict[str, Any]:
        update_data = {**update_data, "updated_at": datetime.now(timezone.utc).isoformat()}
        result = self.supabase.table("automations")\
            .update(update_data)\
            .eq("id", automation_id)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Automation not found")
        return result.data[0]

    def update_status(self, automation_id: str, status: str, error_message: Optional[str] = None) -> Dict[str, Any]:
        update_data: Dict[str, Any] = {"status": status}
        if error_message is not None:
            update_data["error_message"] = error_message
        return self.update_automation(automation_id, update_data)

    def get_status(self, automation_id: str, user_data: Dict[str, Any]) -> Dict[str, Any]:
        automation = self.get_owned_automation(automation_id, user_data)
        generated = automation.get("generated_json")
        return {
            "id": automation["id"],
            "status": automation["status"],
            "has_content": bool(generated),
            "created_at": automation.get("created_at"),
            "updated_at": automation.get("updated_at"),
            "image_url": automation.get("image_url"),
            "description": automation.get("description"),
        }

    def list_completed(self, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        """Public listing: completed automations, newest first, with pagination"""
        offset = (page - 1) * limit
        try:
            result = self.supabase.table("automations")\
                .select("*", count="exact")\
                .eq("status", "completed")\
                .order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching automations: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch automations")

        total = result.count or 0
        return {
            "automations": [format_list_item(a) for a in result.data or []],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit) if limit else 0,
            },
        }

    def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("automations")\
            .select("*")\
            .eq("user_id", user_id)\
            .order("created_at", desc=True)\
            .execute()
        return result.data or []

    def get_by_slug(self, slug: str) -> Dict[str, Any]:
        result = self.supabase.table("automations")\
            .select("id, slug")\
            .eq("slug", slug)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Automation not found")
        return result.data

    def resolve_identifier(self, identifier: str) -> Dict[str, Any]:
        """UUIDs pass through unchanged; anything else is looked up as a slug"""
        if is_uuid(identifier):
            return {"automationId": identifier, "slug": None}
        automation = self.get_by_slug(identifier)
        return {"automationId": automation["id"], "slug": automation.get("slug")}

    def get_tools(self, automation_id: str) -> List[Dict[str, Any]]:
        links = self.supabase.table("automation_tools")\
            .select("tool_id")\
            .eq("automation_id", automation_id)\
            .execute()
        tool_ids = [link["tool_id"] for link in links.data or []]
        if not tool_ids:
            return []
        tools = self.supabase.table("tools")\
            .select("id, name, logo_url")\
            .in_("id", tool_ids)\
            .execute()
        return tools.data or []

    def link_tools(self, automation_id: str, tool_names: List[str]) -> int:
        """Resolve tool names to ids and link them to the automation. Returns the number linked."""
        if not tool_names:
            return 0
        tools = self.supabase.table("tools")\
            .select("id, name")\
            .in_("name", tool_names)\
            .execute()
        if not tools.data:
            return 0
        self.supabase.table("automation_tools").insert([
            {"automation_id": automation_id, "tool_id": tool["id"]} for tool in tools.data
        ]).execute()
        return len(tools.data)

    def get_creator_rank(self, user_id: str) -> Optional[int]:
        try:
            result = self.supabase.rpc("get_user_rank", {"p_user_id": user_id}).execute()
        except Exception as e:
            logger.error(f"Error fetching creator rank: {e}")
            return None
        data = result.data
        if isinstance(data, list) and data:
            return data[0].get("rank")
        return None

    def get_details(self, automation_id: str, admin_client: Optional[Client] = None) -> Dict[str, Any]:
        """Public detail view: row, linked tools, creator profile and leaderboard rank"""
        automation = self.get_automation(automation_id)
        details = {**automation, "tools": self.get_tools(automation_id)}

        user_id = automation.get("user_id")
        if admin_client is not None and user_id:
            try:
                response = admin_client.auth.admin.get_user_by_id(user_id)
                creator = response.user if response else None
                if creator:
                    metadata = creator.user_metadata or {}
                    details["user_name"] = metadata.get("full_name") or automation.get("user_name")
                    details["user_avatar_url"] = metadata.get("avatar_url") or automation.get("user_avatar_url")
            except Exception as e:
                logger.warning(f"Could not load creator {user_id} for automation {automation_id}: {e}")

        details["creator_rank"] = self.get_creator_rank(user_id) if user_id else None
        return details

    def delete_automation(self, automation_id: str) -> None:
        try:
            self.supabase.table("automation_tools")\
                .delete()\
                .eq("automation_id", automation_id)\
                .execute()
            self.supabase.table("automations")\
                .delete()\
                .eq("id", automation_id)\
                .execute()
            logger.info(f"Automation {automation_id} deleted")
        except Exception as e:
            logger.error(f"Error deleting automation {automation_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete automation")
