import asyncio
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.llm.errors import LLMError
from app.modules.auth import routes as auth_routes
from app.modules.workflow import routes as workflow_routes
from app.modules.pending_automations import routes as pending_automations_routes
from app.modules.automations import routes as automations_routes
from app.modules.leaderboard import routes as leaderboard_routes
from app.modules.tools import routes as tools_routes
from app.modules.system_prompts import routes as system_prompts_routes
from app.modules.ai_models import routes as ai_models_routes
from app.modules.users import routes as users_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(LLMError)
async def llm_exception_handler(request: Request, exc: LLMError):
    logger.error("Model provider error: %s", exc)
    return JSONResponse(status_code=503, content={"detail": "AI service unavailable"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
# pending_automations before automations: both use the /automations prefix
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(workflow_routes.router, prefix="/api/v1")
app.include_router(pending_automations_routes.router, prefix="/api/v1")
app.include_router(pending_automations_routes.admin_router, prefix="/api/v1")
app.include_router(automations_routes.router, prefix="/api/v1")
app.include_router(leaderboard_routes.router, prefix="/api/v1")
app.include_router(tools_routes.router, prefix="/api/v1")
app.include_router(system_prompts_routes.router, prefix="/api/v1")
app.include_router(ai_models_routes.router, prefix="/api/v1")
app.include_router(users_routes.router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")

    app.state.pending_cleanup_task = None
    if settings.enable_pending_cleanup:
        from app.modules.pending_automations.cleanup_scheduler import pending_cleanup_loop
        app.state.pending_cleanup_task = asyncio.create_task(pending_cleanup_loop())
        logger.info(
            f"Pending cleanup started - will remove expired pending automations every "
            f"{settings.pending_cleanup_interval_sec} seconds"
        )


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")

    task = getattr(app.state, "pending_cleanup_task", None)
    if task is not None:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            logger.info("Pending cleanup stopped")


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: reports whether the provider keys needed by the pipeline are set."""
    return {
        "status": "ready",
        "openrouter_configured": bool(settings.openrouter_api_key),
        "image_generation_configured": bool(settings.openai_api_key),
    }
