"""
DoseTrack Backend
Main FastAPI application for dose scheduling and adherence tracking
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Configuration and database
from config import settings
from database import init_db, DatabaseHealthCheck

from api import include_routers

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error_body(message, status_code: int) -> dict:
    """Error envelope shared by every handler; `message` may be a rejection dict"""
    return {
        "error": True,
        "message": message,
        "status_code": status_code,
        "timestamp": _timestamp()
    }


# ==================== LIFESPAN ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown"""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENV}")

    # Initialize database
    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}")


# ==================== APP INITIALIZATION ====================

app = FastAPI(
    title=settings.APP_NAME,
    description="""
    ## DoseTrack API

    Medication dose scheduling and adherence tracking.

    ### Features
    - **Schedules**: Daily, weekly, every-N-days, every-N-hours, fixed courses and as-needed (PRN)
    - **Routine anchors**: Doses tied to wake, meals and bedtime
    - **Dose actions**: Taken, skip with reason, postpone with collision check, undo
    - **Inventory**: Depletion forecasts and refill reminders
    - **Analytics**: Adherence rates, weekday/hour heatmap, problem times and streaks
    """,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Attach modular API routers (prefix /api/v1)
include_routers(app)


# ==================== EXCEPTION HANDLERS ====================

@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.detail, exc.status_code)
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=_error_body(
            "An unexpected error occurred" if not settings.DEBUG else str(exc),
            500
        )
    )


# ==================== HEALTH ENDPOINTS ====================

@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - basic health check"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "healthy",
        "timestamp": _timestamp()
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Database connectivity plus row counts for the dose log and inventory tables"""
    db_connected = DatabaseHealthCheck.is_connected()
    database = {
        "status": "up" if db_connected else "down",
        "type": "sqlite" if "sqlite" in settings.DATABASE_URL else "postgresql"
    }
    if db_connected:
        database["tables"] = DatabaseHealthCheck.get_table_counts()

    return {
        "status": "healthy" if db_connected else "degraded",
        "timestamp": _timestamp(),
        "checks": {"database": database}
    }


# ==================== MAIN ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
