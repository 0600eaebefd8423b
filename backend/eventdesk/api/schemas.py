#!/usr/bin/env python3
"""
Pydantic schemas for API requests and responses.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class CreateEventRequest(BaseModel):
    name: str = Field(..., min_length=1)
    starts_at: str = Field(..., min_length=1)
    ends_at: str = Field(..., min_length=1)
    venue_id: Optional[Union[int, str]] = None
    sc_id: Optional[Union[int, str]] = None


class VenueAddress(BaseModel):
    city: str
    country_code: str = Field(..., min_length=2, max_length=2)


class CreateVenueRequest(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    time_zone: str
    address: VenueAddress


class VenueListResponse(BaseModel):
    data: List[Dict[str, Any]] = []
    meta: Dict[str, Any] = {}


class ErrorResponse(BaseModel):
    error: str
