#!/usr/bin/env python3
"""
Event aggregation across the ticketing and content APIs.
"""

from __future__ import annotations

import asyncio
import logging
import math
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from ..datocms import DatoCMSClient, MirroredEvent
from ..guestmanager import GuestManagerClient
from .models import EnrichedEvent, EventMetrics, EventPage, EventStatus

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TicketStatusMapping:
    """Ticket statuses counted as registered and as attended."""

    registered: FrozenSet[str] = field(default_factory=lambda: frozenset({"confirmed", "checked_in"}))
    attended: FrozenSet[str] = field(default_factory=lambda: frozenset({"checked_in"}))


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def compute_status(ends_at: Optional[str], now: datetime) -> EventStatus:
    """An event is upcoming while its end lies strictly after ``now``."""
    end = parse_timestamp(ends_at)
    if end is not None and end > now:
        return EventStatus.UPCOMING
    return EventStatus.COMPLETED


def count_tickets(tickets: Iterable[Dict[str, Any]], mapping: TicketStatusMapping) -> Tuple[int, int]:
    registered = 0
    attended = 0
    for ticket in tickets:
        status = str(ticket.get("status") or "").lower()
        if status in mapping.registered:
            registered += 1
        if status in mapping.attended:
            attended += 1
    return registered, attended


def summarize(events: Sequence[EnrichedEvent]) -> EventMetrics:
    return EventMetrics(
        total_events=len(events),
        upcoming_events=sum(1 for event in events if event.status is EventStatus.UPCOMING),
        total_attendees=sum(event.attended_count or 0 for event in events),
    )


def _matches(event: EnrichedEvent, needle: str) -> bool:
    haystack = (event.name, event.id, event.status.value, event.venue_name)
    return any(needle in value.lower() for value in haystack if value)


class EventAggregator:
    """Builds the enriched event list and fans event creation out to both APIs."""

    def __init__(
        self,
        *,
        ticketing: GuestManagerClient,
        content: DatoCMSClient,
        ticket_statuses: Optional[TicketStatusMapping] = None,
        concurrency: int = 8,
        enrichment_timeout: Optional[float] = 60,
        clock: Clock = _utcnow,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be positive")
        self._ticketing = ticketing
        self._content = content
        self._ticket_statuses = ticket_statuses or TicketStatusMapping()
        self._concurrency = concurrency
        self._enrichment_timeout = enrichment_timeout
        self._clock = clock

    async def fetch_events(self) -> List[EnrichedEvent]:
        """
        Fetch every ticketing event and enrich each one.

        A failed event listing aborts the call. Venue and ticket lookups run
        concurrently per event, at most ``concurrency`` events at a time, and
        degrade to ``None`` fields on failure. Output keeps upstream order.
        """
        events = await asyncio.to_thread(self._ticketing.fetch_all_events)
        logger.info("Enriching %d events", len(events))

        now = self._clock()
        semaphore = asyncio.Semaphore(self._concurrency)
        enriched = await asyncio.gather(*(self._enrich(event, semaphore, now) for event in events))
        return list(enriched)

    async def list_events(
        self,
        *,
        page_number: int = 1,
        page_size: int = 10,
        search: Optional[str] = None,
    ) -> EventPage:
        events = await self.fetch_events()
        metrics = summarize(events)

        needle = (search or "").strip().lower()
        filtered = [event for event in events if _matches(event, needle)] if needle else events

        start = (page_number - 1) * page_size
        return EventPage(
            items=filtered[start:start + page_size],
            total=len(filtered),
            page_number=page_number,
            page_size=page_size,
            page_count=math.ceil(len(filtered) / page_size),
            metrics=metrics,
        )

    async def create_event(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create an event in the ticketing API, then mirror it into the content API.

        Both credentials are checked before anything is written. There is no
        rollback: when mirroring fails the ticketing event stays and the
        content error is raised to the caller.
        """
        self._ticketing.ensure_configured()
        self._content.ensure_configured()

        fields = dict(payload)
        sc_id = fields.pop("sc_id", None)

        created = await asyncio.to_thread(self._ticketing.create_event, fields)
        event_id = str(created.get("id", ""))
        logger.info("Created ticketing event %s", event_id)

        try:
            mirror = await asyncio.to_thread(
                self._content.create_mirrored_event,
                event_name=created.get("name") or fields.get("name", ""),
                event_id_guest_manager=event_id,
                default_sc_id=str(sc_id) if sc_id is not None else None,
            )
        except Exception:
            logger.error("Mirroring event %s into the content API failed; ticketing event kept", event_id)
            raise

        venue_id = created.get("venue_id") or fields.get("venue_id")
        venue_country = None
        if venue_id:
            _, venue_country = await self._lookup_venue(venue_id)

        return {
            **created,
            "sc_id": sc_id,
            "content_id": mirror.id,
            "venue_country": venue_country,
        }

    async def list_mirrored_events(self) -> List[MirroredEvent]:
        return await asyncio.to_thread(self._content.list_mirrored_events)

    async def _enrich(self, event: Dict[str, Any], semaphore: asyncio.Semaphore, now: datetime) -> EnrichedEvent:
        event_id = str(event.get("id", ""))
        venue_id = event.get("venue_id")
        venue: Tuple[Optional[str], Optional[str]] = (None, None)
        counts: Tuple[Optional[int], Optional[int]] = (None, None)

        async with semaphore:
            cancel = threading.Event()
            venue_task = asyncio.ensure_future(
                self._lookup_venue(venue_id) if venue_id else self._no_venue()
            )
            counts_task = asyncio.ensure_future(self._count_attendees(event_id, cancel))
            try:
                done, pending = await asyncio.wait(
                    {venue_task, counts_task},
                    timeout=self._enrichment_timeout,
                )
                if pending:
                    logger.warning("Enrichment for event %s timed out", event_id)
                    cancel.set()
                    # worker threads cannot be interrupted; keep the slot until they return
                    await asyncio.wait(pending)
            finally:
                cancel.set()

        if venue_task in done:
            venue = venue_task.result()
        if counts_task in done:
            counts = counts_task.result()

        return EnrichedEvent(
            id=event_id,
            name=event.get("name"),
            starts_at=event.get("starts_at"),
            ends_at=event.get("ends_at"),
            venue_id=str(venue_id) if venue_id else None,
            status=compute_status(event.get("ends_at"), now),
            registered_count=counts[0],
            attended_count=counts[1],
            venue_name=venue[0],
            venue_country=venue[1],
        )

    async def _no_venue(self) -> Tuple[Optional[str], Optional[str]]:
        return None, None

    async def _lookup_venue(self, venue_id: str) -> Tuple[Optional[str], Optional[str]]:
        try:
            result = await asyncio.to_thread(self._ticketing.get_venue, str(venue_id))
        except Exception as exc:
            logger.warning("Venue lookup for %s failed: %s", venue_id, exc)
            return None, None

        if not result.ok:
            logger.warning("Venue lookup for %s returned %s", venue_id, result.status)
            return None, None

        venue = result.payload or {}
        address = venue.get("address") or {}
        return venue.get("name"), address.get("country_code")

    async def _count_attendees(
        self,
        event_id: str,
        cancel: threading.Event,
    ) -> Tuple[Optional[int], Optional[int]]:
        try:
            tickets = await asyncio.to_thread(self._ticketing.fetch_all_tickets, event_id, cancel=cancel)
        except Exception as exc:
            logger.warning("Ticket lookup for event %s failed: %s", event_id, exc)
            return None, None
        return count_tickets(tickets, self._ticket_statuses)
