from pydantic import BaseModel, EmailStr
from typing import Literal, List, Optional
from datetime import datetime


class AdminUserResponse(BaseModel):
    id: str
    email: str
    role: str
    created_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None
    email_confirmed_at: Optional[datetime] = None


class AdminUserListResponse(BaseModel):
    users: List[AdminUserResponse]


class UserStats(BaseModel):
    total_users: int
    admin_users: int
    confirmed_users: int
    recent_signups: int


class UserStatsResponse(BaseModel):
    stats: UserStats


class UserRoleUpdate(BaseModel):
    email: EmailStr
    role: str


class UserRoleUpdateResponse(BaseModel):
    message: str
    email: str
    role: Literal["admin", "user"]
