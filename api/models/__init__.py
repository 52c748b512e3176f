# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and data models for the Alaga Help platform.
"""

# Base models
from .base import BaseSchema, generate_id

# Enumerations
from .enums import (
    ResolutionStatus,
    CoordinateSource,
    FieldErrorType,
    BrazilianState
)

# Core entities
from .entities import (
    StructuredAddress,
    GeocodeCandidate,
    GeocodeResult,
    CoordinateState,
    FieldError,
    Toast,
    Advisory,
    FormState,
    DEFAULT_MAP_POSITION
)

# Request models
from .requests import (
    CepPath,
    SessionPath,
    BreadcrumbQuery,
    ZipcodeInputRequest,
    MapPointRequest,
    UpdateFormFieldsRequest,
    CreateFloodingNotificationRequest
)

# Response models
from .responses import (
    HalLink,
    ErrorResponse,
    ValidationErrorResponse,
    AddressResponse,
    CoordinateResolutionResponse
)

__all__ = [
    # Base models
    "BaseSchema",
    "generate_id",

    # Enumerations
    "ResolutionStatus",
    "CoordinateSource",
    "FieldErrorType",
    "BrazilianState",

    # Core entities
    "StructuredAddress",
    "GeocodeCandidate",
    "GeocodeResult",
    "CoordinateState",
    "FieldError",
    "Toast",
    "Advisory",
    "FormState",
    "DEFAULT_MAP_POSITION",

    # Request models
    "CepPath",
    "SessionPath",
    "BreadcrumbQuery",
    "ZipcodeInputRequest",
    "MapPointRequest",
    "UpdateFormFieldsRequest",
    "CreateFloodingNotificationRequest",

    # Response models
    "HalLink",
    "ErrorResponse",
    "ValidationErrorResponse",
    "AddressResponse",
    "CoordinateResolutionResponse"
]
