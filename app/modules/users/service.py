from supabase import Client
from fastapi import HTTPException
from typing import Any, Dict, List, Optional
from datetime import datetime, timedelta, timezone
import logging

logger = logging.getLogger(__name__)

USER_ROLES = ("admin", "user")
RECENT_SIGNUP_DAYS = 7


def _as_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def _user_role(user) -> str:
    return (user.app_metadata or {}).get("role") or "user"


class AdminUserService:
    """User administration through the Supabase Auth admin API (service-role client)"""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _list_auth_users(self) -> List[Any]:
        try:
            return self.supabase.auth.admin.list_users() or []
        except Exception as e:
            logger.error(f"Error fetching users: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch users")

    def list_users(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": user.id,
                "email": user.email or "",
                "role": _user_role(user),
                "created_at": _as_datetime(user.created_at),
                "last_sign_in_at": _as_datetime(user.last_sign_in_at),
                "email_confirmed_at": _as_datetime(user.email_confirmed_at),
            }
            for user in self._list_auth_users()
        ]

    def get_stats(self) -> Dict[str, int]:
        users = self._list_auth_users()
        week_ago = datetime.now(timezone.utc) - timedelta(days=RECENT_SIGNUP_DAYS)

        recent = 0
        for user in users:
            created = _as_datetime(user.created_at)
            if created is None:
                continue
            if created.tzinfo is None:
                created = created.replace(tzinfo=timezone.utc)
            if created > week_ago:
                recent += 1

        return {
            "total_users": len(users),
            "admin_users": sum(1 for u in users if _user_role(u) == "admin"),
            "confirmed_users": sum(1 for u in users if u.email_confirmed_at),
            "recent_signups": recent,
        }

    def set_role(self, email: str, role: str, current_user: Dict[str, Any]) -> None:
        """Grant or revoke the admin role by email"""
        if role not in USER_ROLES:
            raise HTTPException(status_code=400, detail='Role must be "admin" or "user"')
        if email == current_user.get("email") and role == "user":
            raise HTTPException(status_code=400, detail="Cannot remove admin role from yourself")

        user = next((u for u in self._list_auth_users() if u.email == email), None)
        if user is None:
            raise HTTPException(status_code=400, detail="User not found")

        app_metadata = dict(user.app_metadata or {})
        if role == "admin":
            app_metadata["role"] = "admin"
        else:
            app_metadata.pop("role", None)

        try:
            self.supabase.auth.admin.update_user_by_id(user.id, {"app_metadata": app_metadata})
        except Exception as e:
            logger.error(f"Error updating role for {email}: {e}")
            raise HTTPException(status_code=400, detail=str(e))
        logger.info(f"User {email} role set to {role} by {current_user.get('email')}")
