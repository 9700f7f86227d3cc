"""
TrackMyStartup - FastAPI Application Entry Point

This is the main entry point for the FastAPI application.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.config import settings
from app.database import init_db, close_db
from app.utils.error_handling import ErrorTrackingMiddleware, setup_exception_handlers

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.debug else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Environment: {settings.app_env}")

    await init_db()
    logger.info("Database tables initialized")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    await close_db()
    logger.info("Database connections closed")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Employee ESOP, cap table and financial tracking for startups",
    version="0.1.0",
    docs_url="/api/docs" if settings.is_development else None,
    redoc_url="/api/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ErrorTrackingMiddleware)

setup_exception_handlers(app)

# Uploaded contracts, attachments and proofs
Path(settings.storage_local_path).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.storage_local_path, check_dir=False), name="uploads")


# ===========================================
# API ROUTES
# ===========================================

@app.get("/api")
async def api_info():
    """API information endpoint."""
    return {
        "name": settings.app_name,
        "version": "0.1.0",
        "status": "running",
        "environment": settings.app_env,
        "api_docs": "/api/docs" if settings.is_development else "disabled",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/api/v1")
async def api_root():
    """API v1 root endpoint."""
    return {
        "message": f"Welcome to {settings.app_name} API v1",
        "endpoints": {
            "auth": "/api/v1/auth",
            "startups": "/api/v1/startups/{startup_id}",
            "employees": "/api/v1/startups/{startup_id}/employees",
            "financials": "/api/v1/startups/{startup_id}/financials",
            "cap_table": "/api/v1/startups/{startup_id}/cap-table",
            "investments": "/api/v1/startups/{startup_id}/investments",
        }
    }


# ===========================================
# INCLUDE ROUTERS
# ===========================================

from app.routers import auth, cap_table, employees, financials, startups

app.include_router(auth.router, prefix="/api/v1/auth", tags=["Authentication"])

# Static sub-paths are registered before the bare /{startup_id} profile route
app.include_router(employees.router, prefix="/api/v1/startups", tags=["Employees"])
app.include_router(financials.router, prefix="/api/v1/startups", tags=["Financials"])
app.include_router(cap_table.router, prefix="/api/v1/startups", tags=["Cap Table"])
app.include_router(startups.router, prefix="/api/v1/startups", tags=["Startups"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=5120,
        reload=settings.is_development,
    )
