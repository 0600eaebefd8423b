#!/usr/bin/env python3
"""
Application settings and configuration helpers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
import os
from typing import FrozenSet, List, Optional

from ..services.datocms import DEFAULT_ENDPOINT, DatoCMSConfig
from ..services.events import TicketStatusMapping
from ..services.guestmanager import DEFAULT_BASE_URL, GuestManagerConfig


_DEV_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or default


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_statuses(name: str, default: str) -> FrozenSet[str]:
    raw = os.getenv(name, default)
    return frozenset(item.strip().lower() for item in raw.split(",") if item.strip())


@dataclass
class Settings:
    """Container for runtime configuration."""

    guest_manager_token: Optional[str] = field(default_factory=lambda: _env_str("GUEST_MANAGER_AUTH_TOKEN"))
    guest_manager_base_url: str = field(
        default_factory=lambda: _env_str("GUEST_MANAGER_BASE_URL", DEFAULT_BASE_URL)
    )
    datocms_token: Optional[str] = field(default_factory=lambda: _env_str("DATOCMS_API_TOKEN"))
    datocms_endpoint: str = field(default_factory=lambda: _env_str("DATOCMS_ENDPOINT", DEFAULT_ENDPOINT))
    datocms_include_drafts: bool = field(default_factory=lambda: _env_bool("DATOCMS_INCLUDE_DRAFTS"))
    page_size: int = field(default_factory=lambda: int(os.getenv("UPSTREAM_PAGE_SIZE", "100")))
    request_timeout: float = field(default_factory=lambda: float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "30")))
    enrichment_concurrency: int = field(default_factory=lambda: int(os.getenv("ENRICHMENT_CONCURRENCY", "8")))
    enrichment_timeout: float = field(
        default_factory=lambda: float(os.getenv("ENRICHMENT_TIMEOUT_SECONDS", "60"))
    )
    registered_statuses: FrozenSet[str] = field(
        default_factory=lambda: _env_statuses("REGISTERED_TICKET_STATUSES", "confirmed,checked_in")
    )
    attended_statuses: FrozenSet[str] = field(
        default_factory=lambda: _env_statuses("ATTENDED_TICKET_STATUSES", "checked_in")
    )
    domain_name: str = field(default_factory=lambda: os.getenv("DOMAIN_NAME", "").strip())
    _dev_origins: List[str] = field(default_factory=lambda: list(_DEV_ORIGINS))

    def guest_manager_config(self) -> GuestManagerConfig:
        return GuestManagerConfig(
            token=self.guest_manager_token,
            base_url=self.guest_manager_base_url,
            page_size=self.page_size,
            timeout=self.request_timeout,
        )

    def datocms_config(self) -> DatoCMSConfig:
        return DatoCMSConfig(
            token=self.datocms_token,
            endpoint=self.datocms_endpoint,
            include_drafts=self.datocms_include_drafts,
            timeout=self.request_timeout,
        )

    def ticket_statuses(self) -> TicketStatusMapping:
        return TicketStatusMapping(
            registered=self.registered_statuses,
            attended=self.attended_statuses,
        )

    def allowed_origins(self) -> List[str]:
        """Compute allowed CORS origins."""
        if self.domain_name and self.domain_name != "localhost":
            return [
                f"http://{self.domain_name}",
                f"https://{self.domain_name}",
            ]
        return list(self._dev_origins)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
