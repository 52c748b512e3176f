# SPDX-License-Identifier: Apache-2.0

"""
Flooding notification form state container.

Every change to a form goes through ``reduce(state, action)``, a pure
function returning a new ``FormState``. ``FormStateStore`` owns the current
state and serializes dispatches, so address fields, coordinates, limits and
errors always change as one ordered transition.

Actions produced by a resolution run carry the sequence number the run was
started with. Once the postal code changes again the sequence moves on and
late results from the superseded run are discarded.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
import threading
import logging

from models.entities import (
    FormState, StructuredAddress, GeocodeResult, FieldError, Toast, Advisory
)
from models.enums import CoordinateSource, FieldErrorType
from domain.address_resolution import (
    coordinate_state_from_point, coordinate_state_from_result,
    NOT_FOUND_TITLE, NOT_FOUND_MESSAGE, COORDINATE_ERROR_MESSAGE
)

logger = logging.getLogger(__name__)

COORDINATE_FIELDS = ('latitude', 'longitude')

ERROR_TOAST = Toast(title="Erro!", description="Ocorreu um erro, tente novamente!")
SUCCESS_TOAST = Toast(title="Sucesso", description="Sua notificação foi salva com sucesso.")


@dataclass
class ZipcodeChanged:
    """User edited the postal-code input (already stripped to digits)."""
    zipcode: str


@dataclass
class ResolutionStarted:
    """
    A debounced postal code entered the lookup pipeline.

    ``seq`` is the sequence number the input had when it was debounced. A
    postal code edited again before the timer fired no longer matches it.
    """
    zipcode: str
    seq: Optional[int] = None


@dataclass
class AddressLoaded:
    seq: int
    address: StructuredAddress


@dataclass
class CoordinatesResolved:
    seq: int
    result: GeocodeResult


@dataclass
class CoordinatesNotFound:
    seq: int


@dataclass
class ResolutionFailed:
    """Lookup or geocoding raised; the form stays editable."""
    seq: int
    error: str


@dataclass
class PointSelected:
    """User placed a point on the map widget."""
    latitude: float
    longitude: float
    bounds: List[float] = field(default_factory=list)


@dataclass
class FieldsEdited:
    """User typed into free-text fields."""
    values: Dict[str, Any]


@dataclass
class AdvisoryDismissed:
    pass


@dataclass
class SubmissionRejected:
    """Submission failed validation; errors keyed by field name."""
    errors: Dict[str, str]


@dataclass
class SubmissionCompleted:
    success: bool


Action = Union[
    ZipcodeChanged, ResolutionStarted, AddressLoaded, CoordinatesResolved,
    CoordinatesNotFound, ResolutionFailed, PointSelected, FieldsEdited,
    AdvisoryDismissed, SubmissionRejected, SubmissionCompleted
]

# Actions that belong to a resolution run and are dropped when stale
_SEQUENCED = (AddressLoaded, CoordinatesResolved, CoordinatesNotFound, ResolutionFailed)


def _without_errors(errors: Dict[str, FieldError], names) -> Dict[str, FieldError]:
    return {name: error for name, error in errors.items() if name not in names}


def blocking_errors(state: FormState) -> Dict[str, str]:
    """Manual errors that block submission regardless of field values."""
    return {
        name: error.message for name, error in state.errors.items()
        if error.type == FieldErrorType.MANUAL
    }


def is_stale(state: FormState, action: Action) -> bool:
    """Whether an action belongs to a superseded resolution run or input."""
    if isinstance(action, ResolutionStarted):
        return action.seq is not None and action.seq != state.resolution_seq
    return isinstance(action, _SEQUENCED) and action.seq != state.resolution_seq


def reduce(state: FormState, action: Action) -> FormState:
    """
    Apply one action to a form state.

    Args:
        state: Current form state
        action: Action to apply

    Returns:
        New FormState; ``state`` is never mutated
    """
    if is_stale(state, action):
        return state

    if isinstance(action, ZipcodeChanged):
        if action.zipcode == state.zipcode:
            return state
        # A new value supersedes any run still in flight
        return state.model_copy(update={
            'zipcode': action.zipcode,
            'resolution_seq': state.resolution_seq + 1,
            'searching': False,
            'toast': None
        })

    if isinstance(action, ResolutionStarted):
        return state.model_copy(update={
            'zipcode': action.zipcode,
            'resolution_seq': state.resolution_seq + 1,
            'searching': True,
            'toast': None
        })

    if isinstance(action, AddressLoaded):
        return state.model_copy(update=action.address.form_fields())

    if isinstance(action, CoordinatesResolved):
        result = action.result
        return state.model_copy(update={
            'coordinates': coordinate_state_from_result(result),
            'position': [result.latitude, result.longitude],
            'coordinate_source': CoordinateSource.GEOCODER,
            'errors': _without_errors(state.errors, COORDINATE_FIELDS),
            'advisory': None,
            'searching': False
        })

    if isinstance(action, CoordinatesNotFound):
        errors = dict(state.errors)
        for name in COORDINATE_FIELDS:
            errors[name] = FieldError(type=FieldErrorType.MANUAL, message=COORDINATE_ERROR_MESSAGE)
        return state.model_copy(update={
            'coordinates': state.coordinates.model_copy(update={
                'limit_lat_start': None,
                'limit_lon_start': None,
                'limit_lat_end': None,
                'limit_lon_end': None
            }),
            'errors': errors,
            'advisory': Advisory(title=NOT_FOUND_TITLE, message=NOT_FOUND_MESSAGE, need_button=True),
            'searching': False
        })

    if isinstance(action, ResolutionFailed):
        return state.model_copy(update={'searching': False, 'toast': ERROR_TOAST})

    if isinstance(action, PointSelected):
        return state.model_copy(update={
            'coordinates': coordinate_state_from_point(action.latitude, action.longitude, action.bounds),
            'position': [action.latitude, action.longitude],
            'coordinate_source': CoordinateSource.MAP,
            'errors': _without_errors(state.errors, COORDINATE_FIELDS)
        })

    if isinstance(action, FieldsEdited):
        values = {name: value for name, value in action.values.items() if value is not None}
        # Errors are keyed by the form's camelCase names
        edited = set(values) | {FormState.model_fields[name].alias or name for name in values}
        return state.model_copy(update={
            **values,
            'errors': _without_errors(state.errors, edited)
        })

    if isinstance(action, AdvisoryDismissed):
        return state.model_copy(update={'advisory': None})

    if isinstance(action, SubmissionRejected):
        # Previous validation errors are replaced; manual ones only clear with a new point
        errors = {
            name: error for name, error in state.errors.items()
            if error.type == FieldErrorType.MANUAL
        }
        for name, message in action.errors.items():
            if name in errors:
                continue
            errors[name] = FieldError(type=FieldErrorType.VALIDATION, message=message)
        return state.model_copy(update={'errors': errors})

    if isinstance(action, SubmissionCompleted):
        if action.success:
            return state.model_copy(update={'toast': SUCCESS_TOAST, 'errors': {}, 'submitted': True})
        return state.model_copy(update={'toast': ERROR_TOAST})

    raise TypeError(f"Unknown form action: {type(action).__name__}")


class FormStateStore:
    """Single owner of a form state; the only place it changes."""

    def __init__(self, initial: Optional[FormState] = None):
        self._state = initial or FormState()
        self._lock = threading.RLock()

    @property
    def state(self) -> FormState:
        with self._lock:
            return self._state

    def dispatch(self, action: Action) -> FormState:
        """Apply an action atomically and return the resulting state."""
        with self._lock:
            state = self.try_dispatch(action)
            return self._state if state is None else state

    def try_dispatch(self, action: Action) -> Optional[FormState]:
        """Like ``dispatch``, but returns None when the action was stale."""
        with self._lock:
            if is_stale(self._state, action):
                logger.debug(
                    "Discarding stale form action",
                    extra={
                        "action": type(action).__name__,
                        "action_seq": action.seq,
                        "current_seq": self._state.resolution_seq
                    }
                )
                return None
            self._state = reduce(self._state, action)
            return self._state
