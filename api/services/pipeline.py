# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Address resolution pipeline.

Wires the debounce stage, the postal-code lookup, the geocoding fallback
and the outcome reconciliation to one form state store. Network failures
are caught here, logged and turned into the generic error toast; the form
always stays editable.
"""

from typing import Any, Callable, List, Optional, Tuple
import threading
import logging
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from models.entities import FormState
from models.requests import strip_non_digits
from domain.address_resolution import is_complete_cep, resolve_coordinates
from domain.form_state import (
    FormStateStore, ZipcodeChanged, ResolutionStarted, AddressLoaded,
    CoordinatesResolved, CoordinatesNotFound, ResolutionFailed, PointSelected
)
from middleware.error_handler import NotFoundException, UpstreamServiceError
from services.cep import CepService
from services.geocoding import NominatimGeocoder
from utils.debounce import Debouncer, DEFAULT_DELAY_SECONDS

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class AddressResolutionPipeline:
    """Drives one form's postal code through lookup and geocoding."""

    def __init__(
        self,
        cep_service: CepService,
        geocoder: NominatimGeocoder,
        store: FormStateStore,
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
        timer_factory: Callable[..., Any] = threading.Timer
    ):
        self.cep_service = cep_service
        self.geocoder = geocoder
        self.store = store
        self.debouncer = Debouncer(self._on_debounced, delay_seconds, timer_factory)

    def on_zipcode_input(self, raw_value: str) -> FormState:
        """
        Accept a raw postal-code keystroke value.

        Non-digit characters are dropped. The value is written to the form
        at once; resolution only runs once the value has settled.
        """
        zipcode = strip_non_digits(raw_value)
        if zipcode == self.store.state.zipcode:
            return self.store.state
        state = self.store.dispatch(ZipcodeChanged(zipcode))
        # A timer already past its generation check still carries the old sequence
        self.debouncer.push((zipcode, state.resolution_seq))
        return state

    def _on_debounced(self, value: Tuple[str, int]) -> None:
        zipcode, input_seq = value
        if not is_complete_cep(zipcode):
            logger.debug("Ignoring incomplete postal code", extra={"length": len(zipcode)})
            return
        self.run(zipcode, input_seq)

    def run(self, zipcode: str, input_seq: Optional[int] = None) -> FormState:
        """
        Resolve a complete postal code and apply the outcome to the form.

        Args:
            zipcode: Eight-digit postal code
            input_seq: Sequence number of the input that produced ``zipcode``;
                the run is skipped if the input changed since

        Returns:
            The form state after the run
        """
        state = self.store.try_dispatch(ResolutionStarted(zipcode, input_seq))
        if state is None:
            logger.debug("Skipping superseded postal code", extra={"input_seq": input_seq})
            return self.store.state
        seq = state.resolution_seq

        with tracer.start_as_current_span("pipeline.resolve") as span:
            span.set_attributes({"pipeline.zipcode": zipcode, "pipeline.seq": seq})

            try:
                address = self.cep_service.lookup(zipcode)
                self.store.dispatch(AddressLoaded(seq, address))

                outcome = resolve_coordinates(address, self.geocoder.search)
                span.set_attributes({
                    "pipeline.status": outcome.status.value,
                    "pipeline.attempts": outcome.attempts
                })

                if outcome.is_resolved:
                    return self.store.dispatch(CoordinatesResolved(seq, outcome.result))
                return self.store.dispatch(CoordinatesNotFound(seq))

            except (UpstreamServiceError, NotFoundException) as e:
                span.set_status(Status(StatusCode.ERROR, e.message))
                logger.error(
                    "Address resolution failed",
                    extra={"zipcode": zipcode, "seq": seq, "error": e.message}
                )
                return self.store.dispatch(ResolutionFailed(seq, e.message))

    def select_point(self, latitude: float, longitude: float, bounds: Optional[List[float]] = None) -> FormState:
        """Apply a point picked on the map; clears the coordinate errors."""
        return self.store.dispatch(PointSelected(latitude, longitude, list(bounds or [])))

    def close(self) -> None:
        """Drop any pending debounced value."""
        self.debouncer.cancel()
