# pranveda/main.py
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from pranveda.core.cache import get_redis_client
from pranveda.core.config import get_settings
from pranveda.core.errors import register_exception_handlers
from pranveda.core.identity import IdentityProvider
from pranveda.core.llm import LLMClient
from pranveda.core.rate_limit import RateLimitMiddleware
from pranveda.core.storage_utils import AudioStorage
from pranveda.core.supabase_client import build_supabase_client
from pranveda.core.timeutils import utcnow
from pranveda.database import create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from pranveda.models import profile as _profile_models  # noqa: F401
from pranveda.models import session as _session_models  # noqa: F401
from pranveda.models import progress as _progress_models  # noqa: F401
from pranveda.models import gamification as _gamification_models  # noqa: F401
from pranveda.models import activity_log as _activity_log_models  # noqa: F401

# Routers
from pranveda.routers.auth import router as auth_router
from pranveda.routers.meditation import router as meditation_router
from pranveda.routers.workout import router as workout_router
from pranveda.routers.progress import router as progress_router
from pranveda.routers.gamification import router as gamification_router
from pranveda.routers.ai import router as ai_router
from pranveda.routers.audio import router as audio_router
from pranveda.routers.health import router as health_router

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.
      - Build the identity, LLM and audio storage adapters. Missing
        configuration leaves an adapter unset; routes needing it answer 503.

    Shutdown:
      - No special cleanup needed for sync engine.
    """
    logger.info("Startup: connecting to Postgres...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error(f"Startup: DB connection FAILED: {e}")
        raise

    app.state.identity = None
    if settings.FIREBASE_PROJECT_ID or settings.FIREBASE_CREDENTIALS_FILE:
        try:
            app.state.identity = IdentityProvider.from_settings(settings)
            logger.info("Startup: Firebase identity provider ready.")
        except (ValueError, OSError) as e:
            logger.error(f"Startup: Firebase initialization FAILED: {e}")
    else:
        logger.warning("Startup: Firebase not configured, authenticated routes will answer 503.")

    app.state.llm = None
    if settings.GEMINI_API_KEY:
        app.state.llm = LLMClient.from_settings(settings)
        logger.info(f"Startup: Gemini client ready ({settings.GEMINI_MODEL}).")
    else:
        logger.warning("Startup: GEMINI_API_KEY not set, AI routes will answer 503.")

    if settings.RATE_LIMIT_ENABLED and get_redis_client() is None:
        logger.warning("Startup: Redis not available, rate limits are not enforced.")

    app.state.audio_storage = AudioStorage(build_supabase_client(settings), settings.AUDIO_BUCKET)
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    lifespan=lifespan,
)

register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.monotonic()
    response = await call_next(request)
    elapsed_ms = (time.monotonic() - start) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
    return response


app.add_middleware(RateLimitMiddleware, api_prefix=settings.API_V1_STR)

# --- CORS configuration ---
# Added last so it wraps the rate limiter and 429s still carry CORS headers.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Versioned API prefix, e.g. /api/v1
app.include_router(auth_router, prefix=settings.API_V1_STR)
app.include_router(meditation_router, prefix=settings.API_V1_STR)
app.include_router(workout_router, prefix=settings.API_V1_STR)
app.include_router(progress_router, prefix=settings.API_V1_STR)
app.include_router(gamification_router, prefix=settings.API_V1_STR)
app.include_router(ai_router, prefix=settings.API_V1_STR)
app.include_router(audio_router, prefix=settings.API_V1_STR)
app.include_router(health_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Liveness endpoint."""
    return {
        "status": "ok",
        "service": "pranveda-backend",
        "version": settings.VERSION,
        "timestamp": utcnow().isoformat(),
    }
