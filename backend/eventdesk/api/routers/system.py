#!/usr/bin/env python3
"""
System and diagnostics endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ...core.container import ServiceContainer
from ..dependencies import get_container

router = APIRouter()


@router.get("/health")
async def health_check(container: ServiceContainer = Depends(get_container)):
    """Health check endpoint; reports which upstream credentials are configured."""
    settings = container.settings
    return {
        "status": "healthy",
        "version": "0.3.0",
        "upstreams": {
            "guest_manager": bool(settings.guest_manager_token),
            "datocms": bool(settings.datocms_token),
        },
    }
