"""
ChatVault API - FastAPI application entry point
Archive, classify and export chat conversations
"""

import logging

# Configure logging to show INFO level
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s"
)

from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from chatvault.config import settings
from chatvault.database import create_tables
from chatvault.services.export_service import sweep_stale_archives
from chatvault.middleware.rate_limiter import setup_rate_limiting
from chatvault.utils.error_handlers import setup_error_handlers

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Personal archive for exported chat conversations",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "chats", "description": "Chat records, uploads and exports"},
        {"name": "management", "description": "Sources, categories, projects and formats"},
        {"name": "subscriptions", "description": "Plans and Stripe billing"},
        {"name": "health", "description": "Service status"}
    ]
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_rate_limiting(app)

setup_error_handlers(app)


@app.on_event("startup")
async def startup_event():
    """Initialize database tables and file directories on startup"""
    create_tables()
    for directory in (settings.UPLOAD_DIR, settings.TEMP_DIR):
        Path(directory).mkdir(parents=True, exist_ok=True)
    sweep_stale_archives(settings.TEMP_DIR)

    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION} started ({settings.ENVIRONMENT})")
    logger.info(f"API Docs: http://{settings.API_HOST}:{settings.API_PORT}/docs")
    if not settings.CLERK_JWT_KEY:
        logger.warning("CLERK_JWT_KEY is not set; authenticated routes will answer 500")
    if not settings.STRIPE_SECRET_KEY:
        logger.warning("STRIPE_SECRET_KEY is not set; billing routes will answer 500")


@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION
    }


# Import and register routers
from chatvault.api import management, chats, subscriptions

app.include_router(chats.router, prefix="/api")
app.include_router(management.router, prefix="/api")
app.include_router(subscriptions.router, prefix="/api")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "chatvault.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_RELOAD
    )
