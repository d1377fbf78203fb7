"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from clinicdesk import __version__
from clinicdesk.api.v1.router import api_router
from clinicdesk.core.config import settings
from clinicdesk.core.logging import setup_logging
from clinicdesk.db.init_db import create_tables, init_db
from clinicdesk.db.session import AsyncSessionLocal

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create tables and the bootstrap data in dev when asked to."""
    logger.info(
        f"ClinicDesk {__version__} starting (env={settings.env}, "
        f"default tz={settings.clinic_timezone})"
    )

    if settings.init_db_on_startup and settings.is_dev:
        await create_tables()
        async with AsyncSessionLocal() as session:
            await init_db(session)
        logger.info("Database initialized")

    yield

    logger.info("ClinicDesk stopped")


app = FastAPI(
    title="ClinicDesk API",
    description="Clinic scheduling, payments and staff dashboard",
    version=__version__,
    docs_url="/docs" if settings.is_dev else None,
    redoc_url="/redoc" if settings.is_dev else None,
    openapi_url="/openapi.json" if settings.is_dev else None,
    lifespan=lifespan,
)

if settings.is_dev and settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Report database outages as a retryable 503."""
    logger.error(f"Store error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Clinic data is temporarily unavailable"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    detail = "Internal server error" if settings.is_prod else str(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": detail},
    )


app.include_router(api_router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
async def root() -> dict:
    """Service banner."""
    return {
        "service": "ClinicDesk API",
        "version": __version__,
        "docs": "/docs" if settings.is_dev else None,
    }
