# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Base models with shared configuration.
"""

import uuid
from pydantic import BaseModel, ConfigDict


def generate_id() -> str:
    """Generate a new opaque identifier."""
    return uuid.uuid4().hex


class BaseSchema(BaseModel):
    """Base schema for wire models exchanged with the form client."""

    model_config = ConfigDict(
        # Accept both the Python field name and the camelCase alias
        populate_by_name=True,
        # Use enum values instead of enum objects
        use_enum_values=True,
        validate_assignment=True
    )
