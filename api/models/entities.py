# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the Alaga Help platform.
"""

from datetime import datetime
import re
from typing import List, Optional, Dict
from pydantic import Field, field_validator, model_validator
from .base import BaseSchema
from .enums import CoordinateSource, FieldErrorType

# Initial map centre shown before any address has been resolved
DEFAULT_MAP_POSITION = [-26.830171106617026, -48.69609627289628]

DISPLAY_DATE_FORMAT = "%d/%m/%Y"


def today_display_date() -> str:
    """Today's date in the form's display format."""
    return datetime.now().strftime(DISPLAY_DATE_FORMAT)


class StructuredAddress(BaseSchema):
    """Address returned by the postal-code lookup service."""

    zipcode: str = Field(default="", description="Postal code (CEP)")
    street: str = Field(default="", description="Street name (logradouro)")
    district: str = Field(default="", description="Neighborhood (bairro)")
    complement: str = Field(default="", description="Address complement")
    city: str = Field(default="", description="City (localidade)")
    state: str = Field(default="", description="Two-letter state code (UF)")

    @field_validator('zipcode', 'street', 'district', 'complement', 'city', 'state', mode='before')
    @classmethod
    def default_empty(cls, v):
        """Absent or null fields become empty strings."""
        if v is None:
            return ""
        return str(v).strip()

    @classmethod
    def from_viacep(cls, payload: Dict) -> "StructuredAddress":
        """Map a ViaCEP response body onto the address fields."""
        return cls(
            zipcode=re.sub(r'[^0-9]', '', str(payload.get('cep') or '')),
            street=payload.get('logradouro'),
            district=payload.get('bairro'),
            complement=payload.get('complemento'),
            city=payload.get('localidade'),
            state=payload.get('uf')
        )

    def form_fields(self) -> Dict[str, str]:
        """Fields written into the form as soon as the lookup succeeds."""
        return {
            'street': self.street,
            'district': self.district,
            'complement': self.complement,
            'city': self.city,
            'state': self.state
        }


class GeocodeCandidate(BaseSchema):
    """Query parameters sent to the geocoding service for one attempt."""

    format: str = Field(default="json", description="Response format flag")
    country: str = Field(default="Brazil", description="Country filter")
    state: str = Field(..., description="State filter")
    city: str = Field(..., description="City filter")
    street: str = Field(..., description="Street, optionally followed by the district")
    include_district: bool = Field(default=True, exclude=True, description="Whether the district was requested")

    def params(self) -> Dict[str, str]:
        """Ordered query parameters for the search request."""
        return {
            'format': self.format,
            'country': self.country,
            'state': self.state,
            'city': self.city,
            'street': self.street
        }


class GeocodeResult(BaseSchema):
    """A single usable geocoder match."""

    latitude: float = Field(..., description="Latitude in decimal degrees")
    longitude: float = Field(..., description="Longitude in decimal degrees")
    bounds: Optional[List[float]] = Field(
        default=None,
        description="Bounding box as [latMin, latMax, lonMin, lonMax]"
    )

    @field_validator('bounds')
    @classmethod
    def validate_bounds(cls, v):
        """Bounding boxes carry exactly four values; an empty list means none."""
        if v is None or len(v) == 0:
            return None
        if len(v) != 4:
            raise ValueError('Bounding box must have exactly four values')
        return v


class CoordinateState(BaseSchema):
    """Coordinate fields of the notification form."""

    latitude: Optional[float] = Field(default=None)
    longitude: Optional[float] = Field(default=None)
    limit_lat_start: Optional[float] = Field(default=None, alias="limitLatStart")
    limit_lon_start: Optional[float] = Field(default=None, alias="limitLonStart")
    limit_lat_end: Optional[float] = Field(default=None, alias="limitLatEnd")
    limit_lon_end: Optional[float] = Field(default=None, alias="limitLonEnd")

    @model_validator(mode='after')
    def validate_limits(self):
        """The four limits are either all set or all empty."""
        limits = self.limits()
        populated = [value is not None for value in limits]
        if any(populated) and not all(populated):
            raise ValueError('Bounding limits must be all populated or all empty')
        return self

    def limits(self) -> List[Optional[float]]:
        return [self.limit_lat_start, self.limit_lon_start, self.limit_lat_end, self.limit_lon_end]

    def has_limits(self) -> bool:
        return self.limit_lat_start is not None

    def has_point(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class FieldError(BaseSchema):
    """Field-level error shown next to a form input."""

    type: FieldErrorType = Field(default=FieldErrorType.MANUAL)
    message: str = Field(..., description="User-facing message")


class Toast(BaseSchema):
    """Transient user-facing notice."""

    title: str
    description: str


class Advisory(BaseSchema):
    """Blocking dialog content."""

    title: str
    message: str
    need_button: bool = Field(default=True, alias="needButton")


class FormState(BaseSchema):
    """Complete state of one flooding notification form."""

    date: str = Field(default_factory=today_display_date, description="Display date DD/MM/YYYY")
    zipcode: str = Field(default="")
    street: str = Field(default="")
    address_number: str = Field(default="", alias="addressNumber")
    district: str = Field(default="")
    city: str = Field(default="")
    state: str = Field(default="")
    complement: str = Field(default="")
    observation: str = Field(default="")
    coordinates: CoordinateState = Field(default_factory=CoordinateState)
    position: List[float] = Field(default_factory=lambda: list(DEFAULT_MAP_POSITION))
    coordinate_source: Optional[CoordinateSource] = Field(default=None, alias="coordinateSource")
    errors: Dict[str, FieldError] = Field(default_factory=dict)
    advisory: Optional[Advisory] = Field(default=None)
    searching: bool = Field(default=False, description="Submission locked while resolving")
    submitted: bool = Field(default=False, description="Notification already persisted")
    resolution_seq: int = Field(default=0, alias="resolutionSeq")
    toast: Optional[Toast] = Field(default=None)

    @property
    def advisory_open(self) -> bool:
        return self.advisory is not None

    def submission_payload(self) -> Dict:
        """Form values in the shape accepted by the submission request model."""
        payload = {
            'date': self.date,
            'zipcode': self.zipcode,
            'street': self.street,
            'addressNumber': self.address_number,
            'district': self.district,
            'city': self.city,
            'state': self.state,
            'complement': self.complement,
            'observation': self.observation
        }
        payload.update(self.coordinates.model_dump(by_alias=True))
        return payload
