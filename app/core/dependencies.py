"""
Core dependencies for route protection and admin checks
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from supabase import Client
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

# auto_error=False so a missing header yields 401 (not FastAPI's default 403)
security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )
    return credentials.credentials


def get_current_user_id(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(token)


def is_admin(user_data: Dict[str, Any]) -> bool:
    """Check admin role from app_metadata"""
    # app_metadata is set server-side and cannot be modified by users
    app_metadata = user_data.get("app_metadata") or {}
    return app_metadata.get("role") == "admin"


def require_admin(user_data: dict = Depends(get_current_user_id)) -> dict:
    """Dependency that only lets admins through"""
    if not is_admin(user_data):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required"
        )
    return user_data


def check_automation_owner(automation: Dict[str, Any], user_data: dict, allow_admin: bool = False) -> dict:
    """Allow if caller owns the automation (or is admin when allow_admin). Hides existence from others."""
    if automation.get("user_id") == user_data["id"]:
        return user_data
    if allow_admin and is_admin(user_data):
        return user_data
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Automation not found"
    )
