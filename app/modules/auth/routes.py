from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse
from urllib.parse import urlencode
from app.config import settings
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
)
from app.modules.auth.service import AuthService
from app.core.dependencies import get_current_user_id, get_current_token, get_auth_service, is_admin
from typing import Dict, Optional

import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me")
async def get_current_user(
    current_user: Dict = Depends(get_current_user_id),
):
    """Get current authenticated user and whether they are an admin (for frontend UI)."""
    return {**current_user, "is_admin": is_admin(current_user)}


@router.get("/callback")
async def auth_callback(
    code: Optional[str] = None,
    next: str = "/dashboard",
    code_verifier: Optional[str] = None,
    service: AuthService = Depends(get_auth_service)
):
    """
    OAuth / magic-link landing. Exchanges the code for a session and sends the
    browser back to the site with the tokens; any failure lands on the error page.
    """
    site = settings.site_url.rstrip("/")
    if not next.startswith("/"):
        next = "/dashboard"
    if code:
        try:
            session = service.exchange_code(code, code_verifier)
            query = urlencode({
                "signed_in": "true",
                "access_token": session.access_token,
                "refresh_token": session.refresh_token or "",
            })
            separator = "&" if "?" in next else "?"
            return RedirectResponse(url=f"{site}{next}{separator}{query}", status_code=302)
        except HTTPException as e:
            logger.warning(f"Auth callback failed: {e.detail}")
    return RedirectResponse(url=f"{site}/auth/auth-code-error", status_code=302)
