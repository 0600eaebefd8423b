#!/usr/bin/env python3

from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from eventdesk.services.datocms import DatoCMSClient, DatoCMSConfig, MirroredEvent
from eventdesk.services.events import (
    EventAggregator,
    EventStatus,
    TicketStatusMapping,
    compute_status,
    count_tickets,
)
from eventdesk.services.guestmanager import paginate
from eventdesk.services.upstream import ConfigurationError, UpstreamError, UpstreamResult

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeTicketingClient:
    def __init__(
        self,
        events: List[Dict[str, Any]],
        venues: Optional[Dict[str, Dict[str, Any]]] = None,
        tickets: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        venue_delay: float = 0.0,
    ):
        self.events = events
        self.venues = venues or {}
        self.tickets = tickets or {}
        self.venue_delay = venue_delay
        self.venue_calls: List[str] = []
        self.created: List[Dict[str, Any]] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def ensure_configured(self) -> None:
        pass

    def fetch_all_events(self) -> List[Dict[str, Any]]:
        if isinstance(self.events, Exception):
            raise self.events
        return [dict(event) for event in self.events]

    def get_venue(self, venue_id: str) -> UpstreamResult:
        with self._lock:
            self.venue_calls.append(venue_id)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.venue_delay:
                time.sleep(self.venue_delay)
            venue = self.venues.get(venue_id)
            if venue is None:
                return UpstreamResult(service="Guest Manager", ok=False, status=500, body="boom")
            return UpstreamResult(service="Guest Manager", ok=True, status=200, payload=venue)
        finally:
            with self._lock:
                self.active -= 1

    def fetch_all_tickets(self, event_id: str, cancel=None) -> List[Dict[str, Any]]:
        tickets = self.tickets.get(event_id)
        if tickets is None:
            raise UpstreamError("Guest Manager", 503, "tickets unavailable")
        return tickets

    def create_event(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        record = {"id": "701", **payload}
        self.created.append(record)
        return record


class FakeContentClient:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.mirrored: List[Dict[str, Any]] = []

    def ensure_configured(self) -> None:
        pass

    def create_mirrored_event(self, *, event_name, event_id_guest_manager, default_sc_id=None) -> MirroredEvent:
        if self.fail:
            raise UpstreamError("DatoCMS", None, "Field 'eventName' is invalid")
        self.mirrored.append(
            {"event_name": event_name, "event_id_guest_manager": event_id_guest_manager, "default_sc_id": default_sc_id}
        )
        return MirroredEvent(id="m-1", event_name=event_name, event_id_guest_manager=event_id_guest_manager)

    def list_mirrored_events(self) -> List[MirroredEvent]:
        return [MirroredEvent(id="m-1", event_name="Gala")]


def hall(name: str = "Hall", country: str = "DE") -> Dict[str, Any]:
    return {"id": "v1", "name": name, "address": {"city": "Berlin", "country_code": country}}


def make_aggregator(ticketing, content=None, **kwargs) -> EventAggregator:
    return EventAggregator(
        ticketing=ticketing,
        content=content or FakeContentClient(),
        clock=lambda: NOW,
        **kwargs,
    )


def test_compute_status_boundaries() -> None:
    assert compute_status("2025-03-01T12:00:01Z", NOW) is EventStatus.UPCOMING
    assert compute_status("2025-03-01T12:00:00Z", NOW) is EventStatus.COMPLETED
    assert compute_status("2025-02-28T00:00:00+00:00", NOW) is EventStatus.COMPLETED
    assert compute_status("2025-03-02T00:00:00", NOW) is EventStatus.UPCOMING
    assert compute_status(None, NOW) is EventStatus.COMPLETED
    assert compute_status("not a date", NOW) is EventStatus.COMPLETED


def test_count_tickets_uses_mapping_independently() -> None:
    tickets = [
        {"status": "confirmed"},
        {"status": "checked_in"},
        {"status": "CHECKED_IN"},
        {"status": "cancelled"},
        {},
    ]

    assert count_tickets(tickets, TicketStatusMapping()) == (3, 2)

    custom = TicketStatusMapping(registered=frozenset({"confirmed"}), attended=frozenset({"checked_in", "cancelled"}))
    assert count_tickets(tickets, custom) == (1, 3)


@pytest.mark.asyncio
async def test_events_are_enriched_with_venue_and_counts() -> None:
    ticketing = FakeTicketingClient(
        events=[{"id": "1", "name": "Gala", "ends_at": "2025-04-01T00:00:00Z", "venue_id": "v1"}],
        venues={"v1": hall()},
        tickets={"1": [{"status": "confirmed"}, {"status": "checked_in"}]},
    )

    [event] = await make_aggregator(ticketing).fetch_events()

    assert event.status is EventStatus.UPCOMING
    assert event.venue_name == "Hall"
    assert event.venue_country == "DE"
    assert event.registered_count == 2
    assert event.attended_count == 1


@pytest.mark.asyncio
async def test_failed_venue_lookup_degrades_without_aborting() -> None:
    ticketing = FakeTicketingClient(
        events=[
            {"id": "1", "name": "A", "ends_at": "2024-01-01T00:00:00Z", "venue_id": "gone"},
            {"id": "2", "name": "B", "ends_at": "2024-01-01T00:00:00Z", "venue_id": "v1"},
        ],
        venues={"v1": hall()},
        tickets={"1": [], "2": []},
    )

    first, second = await make_aggregator(ticketing).fetch_events()

    assert first.venue_name is None
    assert first.venue_country is None
    assert first.registered_count == 0
    assert second.venue_name == "Hall"


@pytest.mark.asyncio
async def test_failed_ticket_lookup_leaves_counts_unknown() -> None:
    ticketing = FakeTicketingClient(
        events=[{"id": "1", "name": "A", "ends_at": "2024-01-01T00:00:00Z", "venue_id": "v1"}],
        venues={"v1": hall()},
    )

    [event] = await make_aggregator(ticketing).fetch_events()

    assert event.registered_count is None
    assert event.attended_count is None
    assert event.venue_name == "Hall"


@pytest.mark.asyncio
async def test_event_without_venue_skips_lookup() -> None:
    ticketing = FakeTicketingClient(events=[{"id": "1", "name": "Online"}], tickets={"1": []})

    [event] = await make_aggregator(ticketing).fetch_events()

    assert ticketing.venue_calls == []
    assert event.venue_id is None
    assert event.venue_name is None


@pytest.mark.asyncio
async def test_output_keeps_upstream_order_and_is_deterministic() -> None:
    events = [
        {"id": str(index), "name": f"E{index}", "ends_at": "2026-01-01T00:00:00Z", "venue_id": "v1"}
        for index in range(12)
    ]
    ticketing = FakeTicketingClient(
        events=events,
        venues={"v1": hall()},
        tickets={str(index): [{"status": "confirmed"}] * index for index in range(12)},
    )
    aggregator = make_aggregator(ticketing, concurrency=4)

    first = await aggregator.fetch_events()
    second = await aggregator.fetch_events()

    assert [event.id for event in first] == [str(index) for index in range(12)]
    assert [event.registered_count for event in first] == list(range(12))
    assert first == second


@pytest.mark.asyncio
async def test_fan_out_respects_concurrency_limit() -> None:
    events = [{"id": str(index), "venue_id": "v1"} for index in range(6)]
    ticketing = FakeTicketingClient(
        events=events,
        venues={"v1": hall()},
        tickets={str(index): [] for index in range(6)},
        venue_delay=0.05,
    )

    result = await make_aggregator(ticketing, concurrency=2).fetch_events()

    assert len(result) == 6
    assert 1 <= ticketing.max_active <= 2


@pytest.mark.asyncio
async def test_slow_venue_lookup_times_out_but_keeps_finished_counts() -> None:
    ticketing = FakeTicketingClient(
        events=[{"id": "1", "ends_at": "2030-01-01T00:00:00Z", "venue_id": "v1"}],
        venues={"v1": hall()},
        tickets={"1": []},
        venue_delay=0.5,
    )

    [event] = await make_aggregator(ticketing, enrichment_timeout=0.05).fetch_events()

    assert event.venue_name is None
    assert event.registered_count == 0
    assert event.status is EventStatus.UPCOMING


@pytest.mark.asyncio
async def test_top_level_fetch_failure_aborts() -> None:
    ticketing = FakeTicketingClient(events=ConfigurationError("Missing Guest Manager API token"))

    with pytest.raises(ConfigurationError):
        await make_aggregator(ticketing).fetch_events()


@pytest.mark.asyncio
async def test_list_events_filters_pages_and_summarizes() -> None:
    events = [
        {"id": "1", "name": "Spring Gala", "ends_at": "2025-05-01T00:00:00Z", "venue_id": "v1"},
        {"id": "2", "name": "Winter Gala", "ends_at": "2025-01-01T00:00:00Z", "venue_id": "v1"},
        {"id": "3", "name": "Workshop", "ends_at": "2025-06-01T00:00:00Z"},
    ]
    ticketing = FakeTicketingClient(
        events=events,
        venues={"v1": hall(name="Grand Hall")},
        tickets={
            "1": [{"status": "checked_in"}, {"status": "checked_in"}],
            "2": [{"status": "checked_in"}],
            "3": [{"status": "confirmed"}],
        },
    )
    aggregator = make_aggregator(ticketing)

    page = await aggregator.list_events(page_number=1, page_size=1, search="gala")

    assert page.total == 2
    assert page.page_count == 2
    assert [event.id for event in page.items] == ["1"]
    assert page.metrics.total_events == 3
    assert page.metrics.upcoming_events == 2
    assert page.metrics.total_attendees == 3

    by_venue = await aggregator.list_events(search="grand hall")
    assert [event.id for event in by_venue.items] == ["1", "2"]

    by_status = await aggregator.list_events(search="completed")
    assert [event.id for event in by_status.items] == ["2"]


@pytest.mark.asyncio
async def test_create_event_mirrors_into_content_api() -> None:
    ticketing = FakeTicketingClient(events=[], venues={"v1": hall(country="NL")})
    content = FakeContentClient()

    created = await make_aggregator(ticketing, content).create_event(
        {"name": "Launch", "starts_at": "2030-01-01T10:00:00Z", "ends_at": "2030-01-01T12:00:00Z", "venue_id": "v1", "sc_id": "sc-9"}
    )

    assert ticketing.created[0] == {
        "id": "701",
        "name": "Launch",
        "starts_at": "2030-01-01T10:00:00Z",
        "ends_at": "2030-01-01T12:00:00Z",
        "venue_id": "v1",
    }
    assert content.mirrored == [{"event_name": "Launch", "event_id_guest_manager": "701", "default_sc_id": "sc-9"}]
    assert created["content_id"] == "m-1"
    assert created["venue_country"] == "NL"
    assert created["sc_id"] == "sc-9"


@pytest.mark.asyncio
async def test_create_event_mirror_failure_keeps_ticketing_event() -> None:
    ticketing = FakeTicketingClient(events=[])

    with pytest.raises(UpstreamError, match="eventName"):
        await make_aggregator(ticketing, FakeContentClient(fail=True)).create_event(
            {"name": "Launch", "starts_at": "a", "ends_at": "b"}
        )

    assert [event["id"] for event in ticketing.created] == ["701"]


def test_concurrency_must_be_positive() -> None:
    with pytest.raises(ValueError):
        EventAggregator(ticketing=FakeTicketingClient([]), content=FakeContentClient(), concurrency=0)


class EndlessTicketingClient(FakeTicketingClient):
    """Every ticket page is full, so only cancellation ends a listing."""

    def __init__(self, events: List[Dict[str, Any]], page_delay: float):
        super().__init__(events=events)
        self.page_delay = page_delay
        self.chains = 0
        self.max_chains = 0
        self.pages = 0

    def fetch_all_tickets(self, event_id: str, cancel=None) -> List[Dict[str, Any]]:
        with self._lock:
            self.chains += 1
            self.max_chains = max(self.max_chains, self.chains)

        def fetch_page(number: int, size: int) -> List[Dict[str, Any]]:
            time.sleep(self.page_delay)
            with self._lock:
                self.pages += 1
            return [{"status": "confirmed"}] * size

        try:
            return paginate(fetch_page, 2, cancel=cancel)
        finally:
            with self._lock:
                self.chains -= 1


@pytest.mark.asyncio
async def test_timed_out_ticket_chains_stop_and_stay_within_limit() -> None:
    ticketing = EndlessTicketingClient(events=[{"id": str(index)} for index in range(4)], page_delay=0.1)

    result = await make_aggregator(ticketing, concurrency=1, enrichment_timeout=0.05).fetch_events()

    assert [event.registered_count for event in result] == [None] * 4
    assert ticketing.max_chains == 1
    assert ticketing.chains == 0
    assert ticketing.pages == 4


@pytest.mark.asyncio
async def test_create_event_checks_content_credentials_before_writing() -> None:
    ticketing = FakeTicketingClient(events=[])
    content = DatoCMSClient(DatoCMSConfig(token=None))

    with pytest.raises(ConfigurationError, match="DATOCMS_API_TOKEN"):
        await make_aggregator(ticketing, content).create_event(
            {"name": "Launch", "starts_at": "a", "ends_at": "b"}
        )

    assert ticketing.created == []


@pytest.mark.asyncio
async def test_create_event_sends_numeric_ids_as_given() -> None:
    ticketing = FakeTicketingClient(events=[], venues={"42": hall(country="FR")})
    content = FakeContentClient()

    created = await make_aggregator(ticketing, content).create_event(
        {"name": "Launch", "starts_at": "a", "ends_at": "b", "venue_id": 42, "sc_id": 7}
    )

    assert ticketing.created[0]["venue_id"] == 42
    assert content.mirrored[0]["default_sc_id"] == "7"
    assert created["venue_country"] == "FR"
