#!/usr/bin/env python3
"""
FastAPI dependencies shared by the routers.
"""

from __future__ import annotations

from ..core.container import ServiceContainer, get_service_container


def get_container() -> ServiceContainer:
    return get_service_container()
