"""
Leave Reconciliation Backend - Main Application Entry Point
"""
import logging
from urllib.parse import urlparse, urlunparse

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException

from app.api.router import api_router
from app.core.config import settings
from app.core.errors import (
    LeaveReconError,
    domain_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from app.core.logging import setup_logging
from app.db.init_db import init_db
from app.db.session import SessionLocal, create_sqlite_schema

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)


def _mask_database_url(url: str) -> str:
    """Mask password in DATABASE_URL for safe logging; show full path for sqlite."""
    try:
        parsed = urlparse(url)
        if parsed.scheme == "sqlite":
            return url
        if parsed.password:
            netloc = f"{parsed.username}:****@{parsed.hostname or ''}"
            if parsed.port:
                netloc += f":{parsed.port}"
            return urlunparse(parsed._replace(netloc=netloc))
    except ValueError:
        return "***"
    return url


app = FastAPI(
    title="Leave Reconciliation Backend",
    description="Contract staff leave tracking and parent company billing reconciliation",
    version=settings.VERSION or "1.0.0"
)

# Configure CORS - must be before other middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

# Register exception handlers
app.add_exception_handler(LeaveReconError, domain_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Include all API routes under /api/v1
app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
def startup_log_config() -> None:
    """Log DATABASE_URL at startup so it can be verified against Alembic."""
    logger.info("DATABASE_URL (app): %s", _mask_database_url(settings.DATABASE_URL))
    logger.info("Actual amount source: %s", settings.ACTUAL_AMOUNT_SOURCE)


@app.on_event("startup")
def bootstrap_local_database() -> None:
    """
    Create the SQLite schema and seed demo data for local development

    Other databases are migrated with Alembic and never seeded here.
    """
    create_sqlite_schema()
    if settings.APP_ENV != "local":
        return
    db = SessionLocal()
    try:
        init_db(db)
    finally:
        db.close()
