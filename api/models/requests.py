# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request models for API endpoints.
"""

import re
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_core import PydanticCustomError
from .base import BaseSchema
from .entities import DISPLAY_DATE_FORMAT
from .enums import BrazilianState

REQUIRED_MESSAGE = "Campo obrigatório!"
COORDINATE_REQUIRED_MESSAGE = "Campo obrigatório! Selecione o ponto no mapa!"

_NON_DIGITS = re.compile(r'[^0-9]')


def strip_non_digits(value) -> str:
    """Drop every non-digit character from a raw input value."""
    if value is None:
        return ""
    return _NON_DIGITS.sub('', str(value))


def _blank_to_none(value):
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


class CepPath(BaseModel):
    """Path parameters for address lookups."""

    cep: str = Field(..., description="Postal code, punctuation allowed")


class SessionPath(BaseModel):
    """Path parameters for form session routes."""

    session_id: str = Field(..., description="Form session identifier")


class ZipcodeInputRequest(BaseModel):
    """Raw postal-code value typed by the user."""

    value: str = Field(default="", description="Current contents of the CEP input")

    @field_validator('value', mode='before')
    @classmethod
    def digits_only(cls, v):
        """Non-digit characters are stripped at the input boundary."""
        return strip_non_digits(v)


class MapPointRequest(BaseSchema):
    """Point selected by the user on the map widget."""

    latitude: float = Field(..., ge=-90, le=90, description="Selected latitude")
    longitude: float = Field(..., ge=-180, le=180, description="Selected longitude")
    bounds: List[float] = Field(
        default_factory=list,
        description="Optional bounding box [latMin, latMax, lonMin, lonMax]"
    )

    @field_validator('bounds')
    @classmethod
    def validate_bounds(cls, v):
        """Bounds are either absent or exactly four values."""
        if v and len(v) != 4:
            raise ValueError('Bounding box must have exactly four values')
        return v


class UpdateFormFieldsRequest(BaseSchema):
    """Manual edits to the free-text fields of a form session."""

    date: Optional[str] = Field(None, description="Display date DD/MM/YYYY")
    street: Optional[str] = Field(None, max_length=200)
    address_number: Optional[str] = Field(None, alias="addressNumber", max_length=10)
    district: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=200)
    state: Optional[str] = Field(None, max_length=2)
    complement: Optional[str] = Field(None, max_length=200)
    observation: Optional[str] = Field(None, max_length=1000)

    @field_validator('address_number', mode='before')
    @classmethod
    def address_number_digits(cls, v):
        if v is None:
            return None
        return strip_non_digits(v)


class CreateFloodingNotificationRequest(BaseSchema):
    """Flooding notification form as submitted by the user."""

    date: Optional[str] = Field(None, validate_default=True, description="Display date DD/MM/YYYY")
    zipcode: Optional[str] = Field(None, description="Postal code, 8 digits")
    street: Optional[str] = Field(None, validate_default=True, max_length=200)
    address_number: Optional[int] = Field(None, alias="addressNumber", ge=0)
    district: Optional[str] = Field(None, validate_default=True, max_length=200)
    city: Optional[str] = Field(None, validate_default=True, max_length=200)
    state: Optional[str] = Field(None, validate_default=True)
    complement: Optional[str] = Field(None, max_length=200)
    observation: Optional[str] = Field(None, max_length=1000)
    latitude: Optional[float] = Field(None, validate_default=True, ge=-90, le=90)
    longitude: Optional[float] = Field(None, validate_default=True, ge=-180, le=180)
    limit_lat_start: Optional[float] = Field(None, alias="limitLatStart")
    limit_lon_start: Optional[float] = Field(None, alias="limitLonStart")
    limit_lat_end: Optional[float] = Field(None, alias="limitLatEnd")
    limit_lon_end: Optional[float] = Field(None, alias="limitLonEnd")

    @field_validator('date', mode='before')
    @classmethod
    def validate_date(cls, v):
        """Date must be present and in DD/MM/YYYY."""
        v = _blank_to_none(v)
        if v is None:
            raise PydanticCustomError('required', REQUIRED_MESSAGE)
        try:
            datetime.strptime(str(v).strip(), DISPLAY_DATE_FORMAT)
        except ValueError:
            raise PydanticCustomError('date_format', 'Data inválida! Use o formato DD/MM/AAAA.')
        return str(v).strip()

    @field_validator('zipcode', mode='before')
    @classmethod
    def validate_zipcode(cls, v):
        """Postal code is optional but numeric with 8 digits when given."""
        v = _blank_to_none(v)
        if v is None:
            return None
        digits = strip_non_digits(v)
        if len(digits) != 8:
            raise PydanticCustomError('zipcode_format', 'CEP deve conter 8 dígitos!')
        return digits

    @field_validator('address_number', mode='before')
    @classmethod
    def validate_address_number(cls, v):
        """Address number is optional and numeric."""
        v = _blank_to_none(v)
        if v is None:
            return None
        digits = strip_non_digits(v)
        if not digits:
            raise PydanticCustomError('number_format', 'Número inválido!')
        return int(digits)

    @field_validator('street', 'district', 'city', mode='before')
    @classmethod
    def validate_required_text(cls, v):
        v = _blank_to_none(v)
        if v is None:
            raise PydanticCustomError('required', REQUIRED_MESSAGE)
        return str(v).strip()

    @field_validator('state', mode='before')
    @classmethod
    def validate_state(cls, v):
        """State must be one of the Brazilian UF codes."""
        v = _blank_to_none(v)
        if v is None:
            raise PydanticCustomError('required', REQUIRED_MESSAGE)
        code = str(v).strip().upper()
        if code not in BrazilianState.__members__:
            raise PydanticCustomError('state_code', 'Selecione um estado válido!')
        return code

    @field_validator('latitude', 'longitude', mode='before')
    @classmethod
    def validate_coordinate(cls, v):
        """Coordinates must come from the geocoder or a map point."""
        v = _blank_to_none(v)
        if v is None:
            raise PydanticCustomError('required', COORDINATE_REQUIRED_MESSAGE)
        return v

    @field_validator('limit_lat_start', 'limit_lon_start', 'limit_lat_end', 'limit_lon_end', mode='before')
    @classmethod
    def empty_limit(cls, v):
        return _blank_to_none(v)

    @field_validator('complement', 'observation', mode='before')
    @classmethod
    def empty_text(cls, v):
        if v is None:
            return None
        return str(v).strip()

    @model_validator(mode='after')
    def validate_limits(self):
        """Bounding limits are submitted all together or not at all."""
        limits = [self.limit_lat_start, self.limit_lon_start, self.limit_lat_end, self.limit_lon_end]
        populated = [value is not None for value in limits]
        if any(populated) and not all(populated):
            raise ValueError('Bounding limits must be all populated or all empty')
        return self


class BreadcrumbQuery(BaseModel):
    """Query string for the breadcrumb trail."""

    path: str = Field(default="/app", description="Dashboard pathname")
