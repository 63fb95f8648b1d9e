"""
Driver Loan Gateway - Main Application Entry Point

Scores gig-economy drivers, runs their microloans from application to
repayment, and reconciles weekly installments against each loan's schedule.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from loan_gateway import __version__
from loan_gateway.core.config import settings
from loan_gateway.core.logging import setup_logging
from loan_gateway.core.metrics import get_metrics, get_metrics_content_type
from loan_gateway.infrastructure.database import db_manager
from loan_gateway.presentation.api import api_router
from loan_gateway.presentation.middleware import (
    LoggingMiddleware,
    RequestContextMiddleware,
    error_handler_middleware,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events:
    - Set up logging
    - Initialize database connection pool
    - Create missing tables when running in debug mode
    - Clean up on shutdown
    """
    setup_logging()
    db_manager.init()
    if settings.debug:
        await db_manager.create_all()

    logger = structlog.get_logger(__name__)
    logger.info(
        "application_started",
        version=__version__,
        mock_mode=settings.mock_mode,
        currency=settings.currency,
    )

    yield

    await db_manager.close()
    logger.info("application_stopped")


app = FastAPI(
    title="Driver Loan Gateway",
    description="Credit scoring, microloan lifecycle and repayment reconciliation for drivers",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestContextMiddleware)

error_handler_middleware(app)

app.include_router(api_router)


@app.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type(),
    )


@app.get("/", include_in_schema=False)
async def root():
    """Redirect to API documentation."""

    return RedirectResponse(url="/docs")
