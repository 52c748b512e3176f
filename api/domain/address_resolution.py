# SPDX-License-Identifier: Apache-2.0

"""
Address to coordinate resolution logic.

Pure functions that derive geocoding query candidates from a structured
address, walk them in priority order and reconcile the outcome into the
form coordinate state. Network access is injected as a search callable.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.parse import urlencode
import re
import logging

from models.entities import (
    StructuredAddress, GeocodeCandidate, GeocodeResult, CoordinateState
)
from models.enums import ResolutionStatus

logger = logging.getLogger(__name__)

CEP_LENGTH = 8
_CEP_PATTERN = re.compile(r'[0-9]{8}')

NOT_FOUND_TITLE = "Não achamos o local no mapa"
NOT_FOUND_MESSAGE = (
    "Por favor mova o ponteiro do mapa para o local do alagamento para registrar "
    "as coordenadas! Você pode usar o zoom para buscar o local com mais precisão."
)
COORDINATE_ERROR_MESSAGE = "Campo obrigatório! Selecione o ponto no mapa!"

SearchFunction = Callable[[GeocodeCandidate], Optional[GeocodeResult]]


class IncompleteAddressError(ValueError):
    """Raised when an address lacks the fields needed to build a query."""

    def __init__(self, missing: List[str]):
        super().__init__(f"Dados insuficientes para montar a consulta: {', '.join(missing)}")
        self.missing = missing


@dataclass
class ResolutionOutcome:
    """Tagged result of a resolution run: resolved with a match, or not found."""
    status: ResolutionStatus
    result: Optional[GeocodeResult] = None
    attempts: int = 0

    @classmethod
    def resolved(cls, result: GeocodeResult, attempts: int) -> "ResolutionOutcome":
        return cls(status=ResolutionStatus.RESOLVED, result=result, attempts=attempts)

    @classmethod
    def not_found(cls, attempts: int) -> "ResolutionOutcome":
        return cls(status=ResolutionStatus.NOT_FOUND, attempts=attempts)

    @property
    def is_resolved(self) -> bool:
        return self.status == ResolutionStatus.RESOLVED


def is_complete_cep(cep: str) -> bool:
    """Only complete postal codes trigger a lookup."""
    return _CEP_PATTERN.fullmatch(cep) is not None


def build_candidate(address: StructuredAddress, include_district: bool) -> GeocodeCandidate:
    """
    Build one geocoding query from a structured address.

    Args:
        address: Address returned by the lookup service
        include_district: Append the district to the street when present

    Returns:
        GeocodeCandidate with the search parameters

    Raises:
        IncompleteAddressError: street, city or state is empty
    """
    missing = [
        name for name in ('street', 'city', 'state')
        if not getattr(address, name)
    ]
    if missing:
        raise IncompleteAddressError(missing)

    street = address.street
    if include_district and address.district:
        street = f"{address.street}, {address.district}"

    return GeocodeCandidate(
        state=address.state,
        city=address.city,
        street=street,
        include_district=include_district
    )


def candidate_query_string(candidate: GeocodeCandidate) -> str:
    """URL-encoded form of a candidate, as sent to the geocoder."""
    return urlencode(candidate.params())


def build_candidates(address: StructuredAddress) -> List[GeocodeCandidate]:
    """
    Build the ordered candidate list: with district first, then without.

    Incomplete candidates are skipped; an empty list means nothing can be
    attempted for this address.
    """
    candidates = []
    for include_district in (True, False):
        try:
            candidates.append(build_candidate(address, include_district))
        except IncompleteAddressError as e:
            logger.warning(
                "Skipping geocode candidate",
                extra={"include_district": include_district, "missing": e.missing}
            )
    return candidates


def parse_geocode_match(match: Dict[str, Any]) -> Optional[GeocodeResult]:
    """
    Parse a raw geocoder match with textual coordinates.

    Returns None when latitude, longitude or bounding box cannot be parsed.
    """
    try:
        latitude = float(match['lat'])
        longitude = float(match['lon'])
        raw_bounds = match.get('boundingbox') or []
        bounds = [float(value) for value in raw_bounds]
        return GeocodeResult(latitude=latitude, longitude=longitude, bounds=bounds)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Discarding unparseable geocode match", extra={"error": str(e)})
        return None


def resolve_coordinates(address: StructuredAddress, search: SearchFunction) -> ResolutionOutcome:
    """
    Resolve an address by trying candidates in priority order.

    The first candidate that yields a match wins; later candidates are
    never queried. Errors raised by ``search`` propagate to the caller.
    """
    attempts = 0
    for candidate in build_candidates(address):
        attempts += 1
        result = search(candidate)
        if result is not None:
            logger.info(
                "Coordinates resolved",
                extra={"attempt": attempts, "include_district": candidate.include_district}
            )
            return ResolutionOutcome.resolved(result, attempts)

    logger.info("Coordinates not found", extra={"attempts": attempts})
    return ResolutionOutcome.not_found(attempts)


def coordinate_state_from_point(
    latitude: float,
    longitude: float,
    bounds: Optional[Sequence[Any]] = None
) -> CoordinateState:
    """
    Reconcile a point and optional bounds into the form coordinate state.

    Bounds arrive as [latMin, latMax, lonMin, lonMax] and are interleaved
    into start/end pairs; without bounds every limit is empty.
    """
    if bounds:
        return CoordinateState(
            latitude=latitude,
            longitude=longitude,
            limit_lat_start=float(bounds[0]),
            limit_lon_start=float(bounds[2]),
            limit_lat_end=float(bounds[1]),
            limit_lon_end=float(bounds[3])
        )
    return CoordinateState(latitude=latitude, longitude=longitude)


def coordinate_state_from_result(result: GeocodeResult) -> CoordinateState:
    """Coordinate state for a resolved geocoder match."""
    return coordinate_state_from_point(result.latitude, result.longitude, result.bounds)
