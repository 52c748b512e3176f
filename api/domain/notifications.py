# SPDX-License-Identifier: Apache-2.0

"""
Flooding notification domain logic.

This module contains pure functions for validating a submitted form,
converting it to the storage payload and interpreting the persistence
endpoint's answer.
"""

from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime
from pydantic import ValidationError

from models.entities import DISPLAY_DATE_FORMAT
from models.requests import CreateFloodingNotificationRequest

STORAGE_DATE_FORMAT = "%Y-%m-%d"

# The persistence endpoint signals creation with this status only
CREATED_STATUS = 201


@dataclass
class ValidationResult:
    """Result of form validation."""
    is_valid: bool
    request: Optional[CreateFloodingNotificationRequest] = None
    field_errors: Dict[str, str] = field(default_factory=dict)

    @property
    def errors(self) -> List[Dict[str, str]]:
        return [{"field": name, "message": message} for name, message in self.field_errors.items()]


@dataclass
class SubmissionResult:
    """Result of forwarding a notification to the persistence endpoint."""
    success: bool
    status_code: int
    body: Optional[Dict[str, Any]] = None


def to_storage_date(display_date: str) -> str:
    """
    Convert a display date to the storage format.

    Args:
        display_date: Date as DD/MM/YYYY

    Returns:
        Date as YYYY-MM-DD

    Raises:
        ValueError: display_date is not a valid DD/MM/YYYY date
    """
    parsed = datetime.strptime(display_date.strip(), DISPLAY_DATE_FORMAT)
    return parsed.strftime(STORAGE_DATE_FORMAT)


def field_errors_from_validation(error: ValidationError) -> Dict[str, str]:
    """First error message per field, keyed by the form's field names."""
    errors: Dict[str, str] = {}
    for item in error.errors():
        loc = item.get("loc") or ()
        name = str(loc[0]) if loc else "__root__"
        errors.setdefault(name, item["msg"])
    return errors


def validate_submission(payload: Dict[str, Any]) -> ValidationResult:
    """
    Validate a raw form payload.

    Args:
        payload: Form values keyed by their camelCase names

    Returns:
        ValidationResult holding the parsed request or per-field errors
    """
    try:
        request = CreateFloodingNotificationRequest.model_validate(payload)
    except ValidationError as e:
        return ValidationResult(is_valid=False, field_errors=field_errors_from_validation(e))
    return ValidationResult(is_valid=True, request=request)


def build_persistence_payload(request: CreateFloodingNotificationRequest) -> Dict[str, Any]:
    """
    Build the body sent to the persistence endpoint.

    Every form field is forwarded under its camelCase name with the date
    reformatted for storage.
    """
    payload = request.model_dump(by_alias=True)
    payload['date'] = to_storage_date(request.date)
    return payload


def interpret_persistence_response(status_code: int, body: Optional[Dict[str, Any]] = None) -> SubmissionResult:
    """Only a creation status counts as success."""
    return SubmissionResult(success=status_code == CREATED_STATUS, status_code=status_code, body=body)
