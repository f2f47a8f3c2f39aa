import logging
import os

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy import text

from app.database import engine, Base, SessionLocal
from app.errors import AppError, register_exception_handlers
from app.gallery_seed import seed_gallery_prompts
from app.logging_config import configure_logging
from app.models import profile, prompt, rate_limit, subscription  # noqa: F401 - import for table creation
from app.routers.admin import router as admin_router
from app.routers.ai import router as ai_router
from app.routers.analytics import router as analytics_router
from app.routers.payment import router as payment_router
from app.routers.profile import router as profile_router
from app.routers.prompts import router as prompts_router
from app.routers.subscription import router as subscription_router
from app.routers.templates import router as templates_router
from app.services import rate_limiter

configure_logging()
logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-client fixed-window rate limiter for the JSON API.

    Counters are kept in the database so that all instances share them.
    Settings come from environment variables:
    - RATE_LIMIT_PER_MINUTE: Requests per window for /api/* (default: 30)
    - RATE_LIMIT_ANALYZE_PER_MINUTE: Requests per window for image analysis (default: 5)
    - RATE_LIMIT_WINDOW_SECONDS: Window length in seconds (default: 60)
    - RATE_LIMIT_DISABLED: Set to "1" to disable rate limiting (useful for testing)
    """

    def __init__(self, app, rate_limit: int = 30, analyze_limit: int = 5, window_seconds: int = 60):
        super().__init__(app)
        self.disabled = os.environ.get("RATE_LIMIT_DISABLED", "0") == "1"
        self.rate_limit = int(os.environ.get("RATE_LIMIT_PER_MINUTE", rate_limit))
        self.analyze_limit = int(os.environ.get("RATE_LIMIT_ANALYZE_PER_MINUTE", analyze_limit))
        self.window_seconds = int(os.environ.get("RATE_LIMIT_WINDOW_SECONDS", window_seconds))

    def _get_client_ip(self, request: Request) -> str:
        """Get client IP from request, checking X-Forwarded-For header."""
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            # Take the first IP in the chain (original client)
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    def _limit_for(self, path: str) -> tuple[str, int]:
        if "/analyze-image" in path:
            return "analyze", self.analyze_limit
        return "api", self.rate_limit

    def _hit(self, key: str, limit: int) -> rate_limiter.RateLimitResult:
        db = SessionLocal()
        try:
            return rate_limiter.hit(db, key, limit, self.window_seconds)
        finally:
            db.close()

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        # Payment providers must always be able to reach the webhook
        if self.disabled or not path.startswith("/api/") or path == "/api/payment/webhook":
            return await call_next(request)

        scope, limit = self._limit_for(path)
        key = f"{scope}:{self._get_client_ip(request)}"
        result = await run_in_threadpool(self._hit, key, limit)

        if not result.allowed:
            logger.warning("Rate limit exceeded for %s", key)
            return JSONResponse(
                status_code=429,
                content={"error": "Too many requests. Please try again later."},
                headers={"Retry-After": str(result.retry_after)},
            )

        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

        # API responses carry credits and payment data, never cache them
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, private"
        response.headers["Pragma"] = "no-cache"

        return response


Base.metadata.create_all(bind=engine)

# Seed the suggestion gallery on startup
def _seed_gallery():
    """Insert the default gallery prompts if missing."""
    db = SessionLocal()
    try:
        seed_gallery_prompts(db)
    finally:
        db.close()

_seed_gallery()

app = FastAPI(title="Garuda AI Prompt API", version="0.1.0")

register_exception_handlers(app)

# Configure CORS origins from environment variable
# Example: CORS_ORIGINS=https://garuda-ai.id,https://admin.garuda-ai.id
cors_origins_env = os.environ.get("CORS_ORIGINS", "")
if cors_origins_env:
    cors_origins = [origin.strip() for origin in cors_origins_env.split(",") if origin.strip()]
else:
    # Default to localhost origins for development only
    cors_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(RateLimitMiddleware)

app.include_router(payment_router)
app.include_router(subscription_router)
app.include_router(prompts_router)
app.include_router(profile_router)
app.include_router(ai_router)
app.include_router(analytics_router)
app.include_router(templates_router)
app.include_router(admin_router)

@app.get("/")
def read_root():
    return {"message": "Garuda AI Prompt API", "version": "0.1.0"}

@app.get("/healthz")
def healthz():
    """Health check endpoint that verifies database connectivity."""
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Health check failed: %s", e)
        raise AppError("Database unavailable", 503)
    finally:
        db.close()
    return {"status": "ok", "database": "connected"}
