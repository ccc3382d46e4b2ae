from pydantic import BaseModel, EmailStr, Field
from typing import Optional

# Supabase Auth rejects shorter passwords by default
PASSWORD_MIN_LENGTH = 6


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    refresh_token: Optional[str] = None
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)
    full_name: Optional[str] = Field(None, max_length=100)


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str
    # True when the user must follow the emailed link before signing in
    confirmation_required: bool = False
