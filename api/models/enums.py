# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the Alaga Help platform.
"""

from enum import Enum


class ResolutionStatus(str, Enum):
    """Outcome of a coordinate resolution attempt."""
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"


class CoordinateSource(str, Enum):
    """Where the current form coordinates came from."""
    GEOCODER = "geocoder"
    MAP = "map"


class FieldErrorType(str, Enum):
    """Origin of a field-level form error."""
    MANUAL = "manual"
    VALIDATION = "validation"


class BrazilianState(str, Enum):
    """Two-letter codes for Brazilian federative units."""
    AC = "AC"
    AL = "AL"
    AP = "AP"
    AM = "AM"
    BA = "BA"
    CE = "CE"
    DF = "DF"
    ES = "ES"
    GO = "GO"
    MA = "MA"
    MT = "MT"
    MS = "MS"
    MG = "MG"
    PA = "PA"
    PB = "PB"
    PR = "PR"
    PE = "PE"
    PI = "PI"
    RJ = "RJ"
    RN = "RN"
    RS = "RS"
    RO = "RO"
    RR = "RR"
    SC = "SC"
    SP = "SP"
    SE = "SE"
    TO = "TO"
