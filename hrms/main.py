"""
HRMS Time & Pay Engine - FastAPI Application

Attendance, leave ledger, approval workflow and monthly payroll over HTTP/JSON.
Docs stay at the root; the API prefix applies only to routers.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import hrms.models  # noqa: F401  registers every table on Base.metadata
from hrms.core.config import settings
from hrms.core.errors import register_exception_handlers
from hrms.core.init_system import init_system_data
from hrms.core.logging import setup_logging
from hrms.core.middleware import CorrelationIdMiddleware, LoggingMiddleware
from hrms.database import get_db, init_db
from hrms.routers.api_router import api_router

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and seed reference data before serving."""
    logger.info(f"Starting {settings.app_name} v{settings.version} ({settings.environment})")
    try:
        init_db()
        init_system_data()
    except SQLAlchemyError as e:
        logger.error(f"Database initialization failed: {e}")
        raise
    logger.info("Database ready")

    yield

    logger.info("Shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Attendance, leave, approvals and payroll for HR operations",
    docs_url="/docs",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Last added runs first: CORS -> CorrelationId -> Logging
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[settings.request_id_header, "X-Process-Time"],
)

register_exception_handlers(app)

app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/", tags=["Health"])
def root():
    return {
        "message": "HRMS Time & Pay Engine API",
        "version": settings.version,
        "docs": "/docs",
    }


@app.get("/health", tags=["Health"])
@app.get("/liveness", tags=["Health"], include_in_schema=False)
def health_check():
    """Liveness probe."""
    return {
        "status": "up",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.version,
        "environment": settings.environment,
    }


@app.get("/readiness", tags=["Health"])
def readiness_check(db: Session = Depends(get_db)):
    """Readiness probe: the database must answer."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        raise HTTPException(status_code=503, detail="Service not ready")
    return {"status": "ready", "components": {"database": "connected"}}
