#!/usr/bin/env python3
"""
Venue passthrough endpoints backed by Guest Manager.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from ...core.container import ServiceContainer
from ..dependencies import get_container
from ..schemas import CreateVenueRequest, ErrorResponse, VenueListResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Venues"], responses={500: {"model": ErrorResponse}})


@router.get("/venues", response_model=VenueListResponse)
def list_venues(
    page_number: int = Query(1, alias="pageNumber", ge=1),
    page_size: int = Query(10, alias="pageSize", ge=1, le=100),
    search: Optional[str] = Query(None),
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    logger.info("Listing venues: page=%d size=%d search=%s", page_number, page_size, search)
    return container.ticketing_client.list_venues(
        page_number=page_number,
        page_size=page_size,
        search=search,
    )


@router.post("/venues")
def create_venue(
    request: CreateVenueRequest,
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    logger.info("Creating venue %r", request.name)
    return container.ticketing_client.create_venue(request.model_dump(exclude_none=True))
