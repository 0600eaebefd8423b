#!/usr/bin/env python3
"""
Event aggregation services.
"""

from __future__ import annotations

from .aggregator import (
    EventAggregator,
    TicketStatusMapping,
    compute_status,
    count_tickets,
    summarize,
)
from .models import EnrichedEvent, EventMetrics, EventPage, EventStatus

__all__ = [
    "EnrichedEvent",
    "EventAggregator",
    "EventMetrics",
    "EventPage",
    "EventStatus",
    "TicketStatusMapping",
    "compute_status",
    "count_tickets",
    "summarize",
]
