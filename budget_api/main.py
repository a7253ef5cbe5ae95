from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from budget_api.config import settings
from budget_api.db import AsyncSessionLocal, database
from budget_api.exceptions import AppException
from budget_api.routes import api_router
from budget_api.logging_config import setup_logging, get_logger
from budget_api.middleware.logging_middleware import LoggingMiddleware
from budget_api.services.account_service import expire_stale_invitations

# Setup logging
setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


async def sweep_expired_invitations():
    """Mark pending invitations past their expiry as expired"""
    async with AsyncSessionLocal() as db:
        expired = await expire_stale_invitations(db)
    if expired:
        logger.info(f"Expired {expired} stale invitations")


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        logger.info("Starting up...")
        from budget_api.db import connect_with_retry
        await connect_with_retry()

        scheduler = AsyncIOScheduler()
        scheduler.add_job(sweep_expired_invitations, 'interval', minutes=settings.INVITATION_SWEEP_MINUTES)
        scheduler.start()
        logger.info(f"Scheduler started. Sweeping expired invitations every {settings.INVITATION_SWEEP_MINUTES} minutes.")

        yield
    finally:
        logger.info("Shutting down...")
        if 'scheduler' in locals() and scheduler.running:
            scheduler.shutdown()
            logger.info("Scheduler shut down.")
        await database.disconnect()


app = FastAPI(
    title="Budget Before Broke API",
    description="Shared household budgeting and paycheck planning API",
    version="1.0.0",
    lifespan=lifespan
)

# Logging middleware
app.add_middleware(LoggingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["DELETE", "GET", "PATCH", "POST", "PUT"],
    allow_headers=["*"],
)

# Global exception handler
@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )


# Include routers
app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    from budget_api.db import check_database_connection
    db_status = await check_database_connection()
    return {
        "status": "ok" if db_status else "degraded",
        "database": "connected" if db_status else "disconnected"
    }
