"""
Main FastAPI application for the Pagecraft backend.
Handles CORS, request logging middleware, lifespan events, and router registration.
"""
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import close_db, init_db
from app.routers import health, pages, preview, templates

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _uses_database() -> bool:
    return settings.STORAGE_BACKEND.lower() == "database"


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown event handler."""
    logger.info("Starting Pagecraft backend (storage=%s)", settings.STORAGE_BACKEND)

    # Database is only required for the database page store
    if _uses_database():
        await init_db()
        logger.info("Database connection OK")

    if settings.ENHANCEMENT_ENABLED:
        logger.info(
            "Content enhancement via Ollama %s at %s",
            settings.OLLAMA_LLM_MODEL,
            settings.OLLAMA_BASE_URL,
        )
    else:
        logger.info("Content enhancement disabled; output is deterministic")

    logger.info("Pagecraft backend ready on http://%s:%d", settings.HOST, settings.PORT)

    yield  # server is running

    logger.info("Shutting down Pagecraft backend")
    if _uses_database():
        await close_db()


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Pagecraft API",
    description=(
        "**Pagecraft** turns Word documents into structured knowledge pages.\n\n"
        "Key endpoints:\n"
        "- `GET  /api/templates/` — available page templates\n"
        "- `POST /api/preview/` — process a document without storing it\n"
        "- `POST /api/pages/` — process and store a page\n"
        "- `POST /api/pages/{id}/deploy` — publish a stored page\n"
    ),
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request / response logging middleware
# ---------------------------------------------------------------------------

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log every request with method, path, status code, and elapsed time.
    Attaches an ``X-Process-Time`` header (milliseconds) to every response.
    """
    t0 = time.monotonic()
    response = await call_next(request)
    elapsed_ms = round((time.monotonic() - t0) * 1000, 2)

    # Skip health-check polling
    if request.url.path not in ("/api/health/", "/api/health", "/"):
        logger.info(
            "%s %s -> %d  (%.2f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )

    response.headers["X-Process-Time"] = f"{elapsed_ms}ms"
    return response


# ---------------------------------------------------------------------------
# Global exception handler
# ---------------------------------------------------------------------------

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return a structured JSON error for any unhandled exception."""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "detail": "Internal server error",
            "error": str(exc),
            "path": str(request.url.path),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(health.router,    prefix="/api/health",    tags=["Health"])
app.include_router(templates.router, prefix="/api/templates", tags=["Templates"])
app.include_router(preview.router,   prefix="/api/preview",   tags=["Preview"])
app.include_router(pages.router,     prefix="/api/pages",     tags=["Pages"])


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------

@app.get("/", tags=["Root"], include_in_schema=False)
async def root():
    """API root — returns basic service info."""
    return {
        "name": "Pagecraft API",
        "version": "0.1.0",
        "description": "Word document to knowledge page backend",
        "docs": "/docs",
        "health": "/api/health/",
        "endpoints": {
            "templates": "/api/templates/",
            "preview": "/api/preview/",
            "pages": "/api/pages/",
        },
    }


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
        log_level="info",
    )
