"""
InternArea - FastAPI application entry point.

REST backend for the internship portal's public space (feed, likes,
comments, daily-limited posting) and password recovery.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager
from datetime import datetime
import logging
import os

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from . import __version__
from .config import settings
from .rate_limit import limiter
from .routers import posts
from .auth import router as auth_router

# --- Logging Configuration ---
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("internarea")


def setup_database():
    """Create tables if fresh DB, run migrations if existing."""
    import subprocess
    from sqlalchemy import inspect as sa_inspect
    from .database import engine, Base

    inspector = sa_inspect(engine)
    existing = inspector.get_table_names()

    if "users" not in existing:
        logger.info("Fresh database, creating all tables...")
        # Import all models so Base.metadata knows about them
        from . import models  # noqa: F401
        from .auth import models as auth_models  # noqa: F401
        Base.metadata.create_all(bind=engine, checkfirst=True)
        subprocess.run(["alembic", "stamp", "head"], check=True)
        logger.info("Tables created and alembic stamped to head.")
    else:
        logger.info("Existing database, running migrations...")
        subprocess.run(["alembic", "upgrade", "head"], check=True)
        logger.info("Migrations complete.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    logger.info("Starting InternArea API...")
    if settings.database_url.startswith("sqlite:///./data/"):
        os.makedirs("data", exist_ok=True)
    setup_database()
    if settings.auth.allow_friends_count_override:
        logger.warning("X-Friends-Count override is enabled; disable it outside evaluation")
    logger.info("InternArea API ready!")
    yield
    logger.info("Shutting down InternArea API...")


app = FastAPI(
    title="InternArea API",
    description="Public space feed with daily posting limits, and password recovery",
    version=__version__,
    lifespan=lifespan
)

# --- Rate Limiting ---
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# --- Security Headers Middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


# --- Middleware ---
# Parse allowed origins from config
_allowed_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(posts.router, prefix="/api/posts", tags=["posts"])
app.include_router(auth_router, prefix="/api/auth", tags=["auth"])


# --- API Endpoints ---

@app.get("/api/health", tags=["system"])
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.utcnow().isoformat()
    }
