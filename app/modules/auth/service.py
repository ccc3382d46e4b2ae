import hashlib
import time
import logging
from supabase import Client
from app.config import settings
from app.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from fastapi import HTTPException
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (the status page polls every few seconds)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def user_to_dict(user) -> Dict[str, Any]:
    """Flatten a Supabase auth User into the dict shape used by route dependencies."""
    return {
        "id": user.id,
        "email": user.email,
        "user_metadata": user.user_metadata or {},
        "app_metadata": user.app_metadata or {},
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


def display_name(user_data: Dict[str, Any]) -> str:
    """Name shown on automation cards: full_name, then name, then email local part."""
    metadata = user_data.get("user_metadata") or {}
    email = user_data.get("email") or ""
    return (
        metadata.get("full_name")
        or metadata.get("name")
        or (email.split("@")[0] if email else None)
        or "Unknown User"
    )


def avatar_url(user_data: Dict[str, Any]) -> Optional[str]:
    metadata = user_data.get("user_metadata") or {}
    return metadata.get("avatar_url") or metadata.get("picture")


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _session_tokens(self, auth_response, fallback_email: str = "") -> TokenResponse:
        return TokenResponse(
            access_token=auth_response.session.access_token,
            refresh_token=auth_response.session.refresh_token,
            user_id=auth_response.user.id,
            email=auth_response.user.email or fallback_email,
        )

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """
        Sign up with email and password. When the project requires email
        confirmation Supabase returns no session, and the confirmation link
        lands on /auth/callback.
        """
        user_metadata = {"full_name": register_data.full_name} if register_data.full_name else {}
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": user_metadata,
                    "email_redirect_to": f"{settings.site_url.rstrip('/')}/api/v1/auth/callback",
                },
            })
        except Exception as e:
            message = str(e).lower()
            if "already registered" in message or "already exists" in message:
                raise HTTPException(status_code=400, detail="User already exists")
            logger.error(f"Sign-up failed for {register_data.email}: {e}")
            raise HTTPException(status_code=500, detail=f"Registration failed: {e}")

        if not auth_response.user:
            raise HTTPException(status_code=400, detail="Failed to register user")

        logger.info(f"User registered: {auth_response.user.id}")
        return RegisterResponse(
            user_id=auth_response.user.id,
            email=auth_response.user.email or register_data.email,
            message="User registered successfully",
            confirmation_required=auth_response.session is None,
        )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Email/password sign-in returning the Supabase session tokens"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password,
            })
        except Exception as e:
            message = str(e).lower()
            if "invalid" in message or "credentials" in message:
                raise HTTPException(status_code=401, detail="Invalid email or password")
            if "not confirmed" in message:
                raise HTTPException(status_code=403, detail="Email address not confirmed")
            logger.error(f"Sign-in failed for {login_data.email}: {e}")
            raise HTTPException(status_code=500, detail=f"Login failed: {e}")

        if not auth_response.user or not auth_response.session:
            raise HTTPException(status_code=401, detail="Invalid credentials")
        return self._session_tokens(auth_response, login_data.email)

    def exchange_code(self, code: str, code_verifier: Optional[str] = None) -> TokenResponse:
        """Exchange an OAuth / magic-link code for a session."""
        params = {"auth_code": code}
        if code_verifier:
            params["code_verifier"] = code_verifier
        try:
            auth_response = self.supabase.auth.exchange_code_for_session(params)
        except Exception as e:
            logger.warning(f"Code exchange failed: {e}")
            raise HTTPException(status_code=401, detail="Invalid or expired auth code")
        if not auth_response.user or not auth_response.session:
            raise HTTPException(status_code=401, detail="Invalid or expired auth code")
        return self._session_tokens(auth_response)

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user_data, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return user_data
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user_data = user_to_dict(user_response.user)
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
            return user_data
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def logout(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
        try:
            # Supabase Auth tokens are stateless JWTs, so logout is mainly client-side
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Supabase sign_out failed: {e}")
            return False


def clear_auth_cache() -> None:
    _AUTH_USER_CACHE.clear()
