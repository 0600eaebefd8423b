#!/usr/bin/env python3
"""
Event records produced by the aggregation service.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class EventStatus(str, Enum):
    UPCOMING = "Upcoming"
    COMPLETED = "Completed"


class EnrichedEvent(BaseModel):
    """
    Ticketing event merged with its venue and attendance figures.

    Venue and count fields are ``None`` when the matching lookup failed, which
    keeps "unknown" distinct from a real empty venue or a zero count.
    """

    id: str
    name: Optional[str] = None
    starts_at: Optional[str] = None
    ends_at: Optional[str] = None
    venue_id: Optional[str] = None
    status: EventStatus
    registered_count: Optional[int] = None
    attended_count: Optional[int] = None
    venue_name: Optional[str] = None
    venue_country: Optional[str] = None


class EventMetrics(BaseModel):
    total_events: int = 0
    upcoming_events: int = 0
    total_attendees: int = 0


class EventPage(BaseModel):
    items: List[EnrichedEvent]
    total: int
    page_number: int
    page_size: int
    page_count: int
    metrics: EventMetrics
