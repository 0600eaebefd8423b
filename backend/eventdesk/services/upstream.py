#!/usr/bin/env python3
"""
Shared request helper and error types for the upstream SaaS clients.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


class EventDeskError(Exception):
    """Base class for errors surfaced to API callers."""


class ConfigurationError(EventDeskError):
    """Raised when a credential or setting required for a call is missing."""


class UpstreamError(EventDeskError):
    """Raised when an upstream API answers with a non-success status."""

    def __init__(self, service: str, status: Optional[int], body: str):
        self.service = service
        self.status = status
        self.body = body
        super().__init__(f"{service} API error: {status} - {body}")


@dataclass
class UpstreamResult:
    """Outcome of a single upstream call: a JSON payload or a failure."""

    service: str
    ok: bool
    status: Optional[int]
    payload: Any = None
    body: str = ""

    def unwrap(self) -> Any:
        if not self.ok:
            raise UpstreamError(self.service, self.status, self.body)
        return self.payload


def call_upstream(
    session: requests.Session,
    method: str,
    url: str,
    *,
    service: str,
    params: Optional[Dict[str, Any]] = None,
    json: Optional[Dict[str, Any]] = None,
    timeout: float = 30,
) -> UpstreamResult:
    """
    Issue one HTTP request and fold the response into an UpstreamResult.

    Transport failures (connection errors, timeouts) are reported as a failed
    result with no status. A 2xx response without a JSON body yields an empty
    payload.
    """
    try:
        response = session.request(method, url, params=params, json=json, timeout=timeout)
    except requests.RequestException as exc:
        logger.error("%s request %s %s failed: %s", service, method, url, exc)
        return UpstreamResult(service=service, ok=False, status=None, body=str(exc))

    if not response.ok:
        logger.error(
            "%s returned %s for %s %s: %s",
            service,
            response.status_code,
            method,
            url,
            response.text[:200],
        )
        return UpstreamResult(
            service=service,
            ok=False,
            status=response.status_code,
            body=response.text,
        )

    try:
        payload = response.json()
    except ValueError:
        payload = {}

    return UpstreamResult(service=service, ok=True, status=response.status_code, payload=payload)
