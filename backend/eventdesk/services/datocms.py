#!/usr/bin/env python3
"""
DatoCMS content API client used to mirror events for public display.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel, Field

from .upstream import ConfigurationError, UpstreamError, call_upstream

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://graphql.datocms.com/"

_ALL_EVENTS_QUERY = """
query AllEvents {
  allEvents {
    id
    defaultScId
    eventIdGuestManager
    eventName
    startDateAndTime
    endDateAndTime
  }
}
"""

_CREATE_EVENT_MUTATION = """
mutation CreateEvent(
  $eventName: String!
  $eventIdGuestManager: String!
  $defaultScId: String
) {
  createEvent(
    data: {
      eventName: $eventName
      eventIdGuestManager: $eventIdGuestManager
      defaultScId: $defaultScId
    }
  ) {
    id
    defaultScId
    eventIdGuestManager
    eventName
  }
}
"""


@dataclass
class DatoCMSConfig:
    token: Optional[str]
    endpoint: str = DEFAULT_ENDPOINT
    include_drafts: bool = False
    exclude_invalid: bool = False
    timeout: float = 30


class MirroredEvent(BaseModel):
    """Subset of an event published through the content API."""

    id: str
    event_name: Optional[str] = Field(default=None, alias="eventName")
    event_id_guest_manager: Optional[str] = Field(default=None, alias="eventIdGuestManager")
    default_sc_id: Optional[str] = Field(default=None, alias="defaultScId")
    start_date_and_time: Optional[str] = Field(default=None, alias="startDateAndTime")
    end_date_and_time: Optional[str] = Field(default=None, alias="endDateAndTime")

    model_config = {"populate_by_name": True}


class DatoCMSClient:
    """Thin GraphQL client for the DatoCMS content delivery API."""

    name = "DatoCMS"

    def __init__(self, config: DatoCMSConfig, session: Optional[requests.Session] = None) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })
        if config.token:
            self._session.headers["Authorization"] = f"Bearer {config.token}"
        if config.include_drafts:
            self._session.headers["X-Include-Drafts"] = "true"
        if config.exclude_invalid:
            self._session.headers["X-Exclude-Invalid"] = "true"

    def ensure_configured(self) -> None:
        if not self._config.token:
            raise ConfigurationError("Missing DatoCMS API token. Set DATOCMS_API_TOKEN.")

    def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run a GraphQL document and return its ``data`` section."""
        self.ensure_configured()

        result = call_upstream(
            self._session,
            "POST",
            self._config.endpoint,
            service=self.name,
            json={"query": query, "variables": variables or {}},
            timeout=self._config.timeout,
        )
        body = result.unwrap() or {}

        errors = body.get("errors")
        if errors:
            message = ", ".join(str(error.get("message", error)) for error in errors)
            logger.error("DatoCMS GraphQL errors: %s", message)
            raise UpstreamError(self.name, result.status, message)

        return body.get("data") or {}

    def list_mirrored_events(self) -> List[MirroredEvent]:
        data = self.execute(_ALL_EVENTS_QUERY)
        if "allEvents" not in data:
            raise UpstreamError(self.name, None, "Invalid data structure received from DatoCMS")
        return [MirroredEvent.model_validate(item) for item in data["allEvents"] or []]

    def create_mirrored_event(
        self,
        *,
        event_name: str,
        event_id_guest_manager: str,
        default_sc_id: Optional[str] = None,
    ) -> MirroredEvent:
        data = self.execute(
            _CREATE_EVENT_MUTATION,
            {
                "eventName": event_name,
                "eventIdGuestManager": event_id_guest_manager,
                "defaultScId": default_sc_id,
            },
        )
        created = data.get("createEvent")
        if not created:
            raise UpstreamError(self.name, None, "Failed to create event in DatoCMS")
        return MirroredEvent.model_validate(created)
