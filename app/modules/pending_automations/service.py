from supabase import Client
from fastapi import HTTPException
from app.config import settings
from app.modules.pending_automations.schemas import PendingAutomationCreate
from typing import Any, Dict
from datetime import datetime, timedelta, timezone
import logging

logger = logging.getLogger(__name__)


class PendingAutomationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_pending(self, pending_data: PendingAutomationCreate) -> str:
        """Store an anonymous request until its owner signs in. Returns the pending id."""
        expires_at = datetime.now(timezone.utc) + timedelta(hours=settings.pending_automation_ttl_hours)
        try:
            result = self.supabase.table("pending_automations").insert({
                "user_input": pending_data.userInput,
                "selected_tools": pending_data.selectedTools,
                "validation_result": pending_data.validationResult,
                "expires_at": expires_at.isoformat(),
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create pending automation")
            return result.data[0]["id"]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating pending automation: {e}")
            raise HTTPException(status_code=500, detail="Failed to create pending automation")

    def get_unexpired(self, pending_id: str) -> Dict[str, Any]:
        now = datetime.now(timezone.utc).isoformat()
        result = self.supabase.table("pending_automations")\
            .select("*")\
            .eq("id", pending_id)\
            .gt("expires_at", now)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Pending automation not found or has expired")
        return result.data

    def delete_pending(self, pending_id: str) -> None:
        try:
            self.supabase.table("pending_automations").delete().eq("id", pending_id).execute()
        except Exception as e:
            # The automation already exists at this point; a leftover row just expires later
            logger.error(f"Failed to delete pending automation {pending_id}: {e}")

    def cleanup_expired(self) -> int:
        """Delete expired rows. Returns how many were removed."""
        now = datetime.now(timezone.utc).isoformat()
        result = self.supabase.table("pending_automations")\
            .delete()\
            .lt("expires_at", now)\
            .execute()
        deleted = len(result.data or [])
        logger.info(f"Cleaned up {deleted} expired pending automation(s)")
        return deleted
