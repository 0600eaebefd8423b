#!/usr/bin/env python3
"""
Service container for shared backend dependencies.
"""

from __future__ import annotations

from functools import lru_cache

from .settings import Settings, get_settings
from ..services.datocms import DatoCMSClient
from ..services.events import EventAggregator
from ..services.guestmanager import GuestManagerClient


class ServiceContainer:
    """Lazily initialised service container."""

    def __init__(self, settings: Settings):
        self._settings = settings
        self._ticketing_client: GuestManagerClient | None = None
        self._content_client: DatoCMSClient | None = None
        self._event_aggregator: EventAggregator | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def ticketing_client(self) -> GuestManagerClient:
        if self._ticketing_client is None:
            self._ticketing_client = GuestManagerClient(self._settings.guest_manager_config())
        return self._ticketing_client

    @property
    def content_client(self) -> DatoCMSClient:
        if self._content_client is None:
            self._content_client = DatoCMSClient(self._settings.datocms_config())
        return self._content_client

    @property
    def event_aggregator(self) -> EventAggregator:
        if self._event_aggregator is None:
            self._event_aggregator = EventAggregator(
                ticketing=self.ticketing_client,
                content=self.content_client,
                ticket_statuses=self._settings.ticket_statuses(),
                concurrency=self._settings.enrichment_concurrency,
                enrichment_timeout=self._settings.enrichment_timeout,
            )
        return self._event_aggregator


@lru_cache(maxsize=1)
def get_service_container() -> ServiceContainer:
    """Return the shared service container instance."""
    return ServiceContainer(get_settings())
