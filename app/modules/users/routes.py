from fastapi import APIRouter, Depends
from app.database.supabase_client import get_service_supabase
from app.modules.users.schemas import (
    AdminUserListResponse, UserStatsResponse, UserRoleUpdate, UserRoleUpdateResponse
)
from app.modules.users.service import AdminUserService
from app.core.dependencies import require_admin
from supabase import Client
from typing import Dict, Union

router = APIRouter(prefix="/admin/users", tags=["admin: users"])


def get_admin_user_service(supabase: Client = Depends(get_service_supabase)) -> AdminUserService:
    return AdminUserService(supabase)


@router.get("", response_model=Union[UserStatsResponse, AdminUserListResponse])
async def list_users(
    stats: bool = False,
    user_data: Dict = Depends(require_admin),
    service: AdminUserService = Depends(get_admin_user_service)
):
    """All auth users with their role, or summary counts with ?stats=true"""
    if stats:
        return {"stats": service.get_stats()}
    return {"users": service.list_users()}


@router.patch("", response_model=UserRoleUpdateResponse)
async def update_user_role(
    role_data: UserRoleUpdate,
    user_data: Dict = Depends(require_admin),
    service: AdminUserService = Depends(get_admin_user_service)
):
    service.set_role(role_data.email, role_data.role, user_data)
    return {
        "message": f"User role updated to {role_data.role}",
        "email": role_data.email,
        "role": role_data.role,
    }
