from supabase import Client
from fastapi import HTTPException
from typing import Any, Dict, List
import logging

logger = logging.getLogger(__name__)


class LeaderboardService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_leaderboard(self) -> List[Dict[str, Any]]:
        """Completed automations per creator, most first"""
        try:
            result = self.supabase.table("automations")\
                .select("user_id, user_name, user_avatar_url")\
                .eq("status", "completed")\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching leaderboard data: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch leaderboard data")

        contributions: Dict[str, Dict[str, Any]] = {}
        for automation in result.data or []:
            user_id = automation.get("user_id")
            if not user_id:
                continue
            entry = contributions.setdefault(user_id, {
                "user_id": user_id,
                "name": automation.get("user_name") or "Anonymous",
                "avatar_url": automation.get("user_avatar_url"),
                "automations": 0,
            })
            entry["automations"] += 1

        return sorted(contributions.values(), key=lambda e: e["automations"], reverse=True)
