#!/usr/bin/env python3
"""
Guest Manager ticketing API client.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import requests

from .upstream import ConfigurationError, UpstreamResult, call_upstream

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://app.guestmanager.com/api/public/v2"

PageFetcher = Callable[[int, int], List[Dict[str, Any]]]


@dataclass
class GuestManagerConfig:
    token: Optional[str]
    base_url: str = DEFAULT_BASE_URL
    page_size: int = 100
    timeout: float = 30


def paginate(
    fetch_page: PageFetcher,
    page_size: int,
    cancel: Optional[threading.Event] = None,
) -> List[Dict[str, Any]]:
    """
    Collect every record by requesting pages 1, 2, ... in order.

    Stops as soon as a page holds fewer records than ``page_size``, so a final
    page that is exactly full costs one extra (empty) request. Setting
    ``cancel`` stops the loop before the next page is requested.
    """
    if page_size < 1:
        raise ValueError("page_size must be positive")

    records: List[Dict[str, Any]] = []
    page_number = 1
    while True:
        page = fetch_page(page_number, page_size)
        records.extend(page)
        logger.debug("Fetched page %d with %d records", page_number, len(page))
        if len(page) < page_size:
            break
        if cancel is not None and cancel.is_set():
            logger.debug("Pagination cancelled after page %d", page_number)
            break
        page_number += 1
    return records


class GuestManagerClient:
    """Client for events, venues and tickets held by Guest Manager."""

    name = "Guest Manager"

    def __init__(self, config: GuestManagerConfig, session: Optional[requests.Session] = None) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })
        if config.token:
            self._session.headers["Authorization"] = f"Token {config.token}"

    @property
    def page_size(self) -> int:
        return self._config.page_size

    # ---- Events -----------------------------------------------------------------------

    def list_events(self, page_number: int = 1, page_size: Optional[int] = None) -> List[Dict[str, Any]]:
        payload = self._get("/events", params=self._page_params(page_number, page_size)).unwrap()
        return [self._normalize_record(record) for record in self._records(payload)]

    def fetch_all_events(self, page_size: Optional[int] = None) -> List[Dict[str, Any]]:
        return paginate(self.list_events, page_size or self.page_size)

    def create_event(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        created = self._request("POST", "/events", json=payload).unwrap()
        data = created.get("data", created) if isinstance(created, dict) else {}
        return self._normalize_record(data) if data else {}

    # ---- Venues -----------------------------------------------------------------------

    def get_venue(self, venue_id: str) -> UpstreamResult:
        """Fetch one venue; the caller decides how to treat a failed result."""
        result = self._get(f"/venues/{venue_id}", params={"include": "address"})
        if result.ok:
            result.payload = self._normalize_venue(
                self._single(result.payload),
                (result.payload or {}).get("included") or [],
            )
        return result

    def list_venues(
        self,
        page_number: int = 1,
        page_size: int = 10,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        params = self._page_params(page_number, page_size)
        params["include"] = "address"
        if search:
            params["filter[query]"] = search
        payload = self._get("/venues", params=params).unwrap()
        included = payload.get("included") or []
        return {
            "data": [self._normalize_venue(record, included) for record in self._records(payload)],
            "meta": payload.get("meta") or {},
        }

    def create_venue(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        created = self._request("POST", "/venues", json=payload).unwrap()
        if not isinstance(created, dict) or not created:
            return {}
        return self._normalize_venue(self._single(created), created.get("included") or [])

    # ---- Tickets ----------------------------------------------------------------------

    def list_tickets(
        self,
        event_id: str,
        page_number: int = 1,
        page_size: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params = self._page_params(page_number, page_size)
        params["filter[event_id]"] = event_id
        payload = self._get("/tickets", params=params).unwrap()
        return [self._normalize_record(record) for record in self._records(payload)]

    def fetch_all_tickets(
        self,
        event_id: str,
        page_size: Optional[int] = None,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> List[Dict[str, Any]]:
        return paginate(
            lambda number, size: self.list_tickets(event_id, number, size),
            page_size or self.page_size,
            cancel=cancel,
        )

    # ---- Plumbing ---------------------------------------------------------------------

    def ensure_configured(self) -> None:
        if not self._config.token:
            raise ConfigurationError(
                "Missing Guest Manager API token. Set GUEST_MANAGER_AUTH_TOKEN."
            )

    def _get(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> UpstreamResult:
        return self._request("GET", path, params=params)

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> UpstreamResult:
        self.ensure_configured()
        return call_upstream(
            self._session,
            method,
            f"{self._config.base_url.rstrip('/')}{path}",
            service=self.name,
            params=params,
            json=json,
            timeout=self._config.timeout,
        )

    def _page_params(self, page_number: int, page_size: Optional[int]) -> Dict[str, Any]:
        return {
            "page[number]": page_number,
            "page[size]": page_size or self.page_size,
        }

    @staticmethod
    def _records(payload: Any) -> List[Dict[str, Any]]:
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            return list(payload.get("data") or [])
        return []

    @staticmethod
    def _single(payload: Any) -> Dict[str, Any]:
        if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
            return payload["data"]
        return payload if isinstance(payload, dict) else {}

    @staticmethod
    def _normalize_record(record: Dict[str, Any]) -> Dict[str, Any]:
        """Flatten a JSON:API resource into ``{"id": ..., **attributes}``."""
        if "attributes" not in record:
            flat = dict(record)
        else:
            flat = dict(record.get("attributes") or {})
            relationships = record.get("relationships") or {}
            for name, relation in relationships.items():
                target = (relation or {}).get("data")
                if isinstance(target, dict) and target.get("id") is not None:
                    key = f"{name}_id"
                    if flat.get(key) is None:
                        flat[key] = str(target["id"])
        if record.get("id") is not None:
            flat["id"] = str(record["id"])
        return flat

    def _normalize_venue(self, record: Dict[str, Any], included: List[Dict[str, Any]]) -> Dict[str, Any]:
        venue = self._normalize_record(record)
        address = venue.get("address")
        if not isinstance(address, dict):
            address_id = venue.pop("address_id", None)
            address = next(
                (
                    self._normalize_record(item)
                    for item in included
                    if item.get("type") in {"address", "addresses"} and str(item.get("id")) == address_id
                ),
                {},
            )
        venue["address"] = {
            "city": address.get("city"),
            "country_code": address.get("country_code") or address.get("country"),
        }
        return venue
