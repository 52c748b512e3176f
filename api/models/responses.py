# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Response models for API endpoints with HAL support.
"""

from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field

from .entities import StructuredAddress, GeocodeResult, CoordinateState, Advisory


class HalLink(BaseModel):
    """HAL link representation."""

    href: str = Field(..., description="Link URL")
    method: Optional[str] = Field(None, description="HTTP method")
    type: Optional[str] = Field(None, description="Content type")
    title: Optional[str] = Field(None, description="Link title")
    templated: Optional[bool] = Field(None, description="Whether URL is templated")


class ErrorResponse(BaseModel):
    """RFC 7807 problem details body."""

    type: str = Field(..., description="Problem type URI")
    title: str = Field(..., description="Short summary")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Human-readable explanation")
    instance: str = Field(..., description="Request path")


class ValidationErrorResponse(ErrorResponse):
    """Problem details with per-field errors."""

    errors: List[Dict[str, Any]] = Field(default_factory=list, description="Field errors")


class AddressResponse(StructuredAddress):
    """Address lookup response."""


class CoordinateResolutionResponse(BaseModel):
    """Outcome of resolving an address to coordinates."""

    status: str = Field(..., description="resolved or not_found")
    result: Optional[GeocodeResult] = Field(None, description="Winning geocoder match")
    coordinates: CoordinateState = Field(..., description="Coordinate fields to apply to the form")
    attempts: int = Field(..., description="Number of candidates queried")
    errors: Dict[str, str] = Field(default_factory=dict, description="Field errors to show")
    advisory: Optional[Advisory] = Field(None, description="Dialog to open when nothing matched")
