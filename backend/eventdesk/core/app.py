#!/usr/bin/env python3
"""
FastAPI application factory.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .env import load_environment
from .logging import configure_logging
from .settings import get_settings
from ..api import api_router
from ..services.upstream import EventDeskError

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    load_environment()
    configure_logging()

    settings = get_settings()
    app = FastAPI(
        title="EventDesk Admin API",
        version="0.3.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(EventDeskError)
    async def eventdesk_error_handler(request: Request, exc: EventDeskError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    app.include_router(api_router)

    return app
