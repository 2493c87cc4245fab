"""
Opsboard Backend - Main Application

Delivery and service-job KPIs for the billboard (ticker / TV mode) and the
charts page, computed over Supabase.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
import os
import logging

# Before the opsboard imports: config reads the environment at import time
load_dotenv()

from opsboard import config
from opsboard.routers import billboard, metrics, service_jobs
from opsboard.scheduler import start_scheduler, stop_scheduler
from opsboard.services.supabase_client import is_supabase_configured

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    logger.info("Starting Opsboard Backend...")
    if not is_supabase_configured():
        logger.warning("[Startup] Supabase not configured, billboard will serve zeros")
    start_scheduler()
    yield
    # Shutdown
    logger.info("Shutting down Opsboard Backend...")
    stop_scheduler()


# Initialize FastAPI app
app = FastAPI(
    title="Opsboard API",
    description="Delivery and service KPIs for the billboard and charts",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware (configure for your domains)
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ALLOW_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(billboard.router, prefix="/api/billboard", tags=["Billboard"])
app.include_router(metrics.router, prefix="/api/metrics", tags=["Metrics"])
app.include_router(service_jobs.router, prefix="/api/service-jobs", tags=["Service Jobs"])


@app.get("/")
def read_root():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "Opsboard Backend",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Detailed health check"""
    return {
        "status": "healthy",
        "supabase_configured": is_supabase_configured(),
        "tv_token_required": bool(config.get_billboard_tv_token()),
        "billboard_cache_ttl_seconds": config.BILLBOARD_CACHE_TTL_SECONDS,
        "billboard_warm_enabled": config.BILLBOARD_WARM_ENABLED
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", 8000)), reload=True)
