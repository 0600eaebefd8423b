#!/usr/bin/env python3
"""
Event listing and creation endpoints.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from ...core.container import ServiceContainer
from ...services.datocms import MirroredEvent
from ...services.events import EventPage
from ..dependencies import get_container
from ..schemas import CreateEventRequest, ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Events"], responses={500: {"model": ErrorResponse}})


@router.get("/events", response_model=EventPage)
async def list_events(
    page_number: int = Query(1, alias="pageNumber", ge=1),
    page_size: int = Query(10, alias="pageSize", ge=1, le=100),
    search: Optional[str] = Query(None),
    container: ServiceContainer = Depends(get_container),
) -> EventPage:
    """Enriched events with venue and attendance data, filtered and paginated."""
    logger.info("Listing events: page=%d size=%d search=%s", page_number, page_size, search)
    return await container.event_aggregator.list_events(
        page_number=page_number,
        page_size=page_size,
        search=search,
    )


@router.post("/events")
async def create_event(
    request: CreateEventRequest,
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    """Create the event in Guest Manager and mirror it to DatoCMS."""
    logger.info("Creating event %r", request.name)
    return await container.event_aggregator.create_event(request.model_dump(exclude_none=True))


@router.get("/mirrored-events", response_model=List[MirroredEvent], response_model_by_alias=False)
async def list_mirrored_events(
    container: ServiceContainer = Depends(get_container),
) -> List[MirroredEvent]:
    return await container.event_aggregator.list_mirrored_events()
