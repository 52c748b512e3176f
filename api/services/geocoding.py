# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Geocoding client backed by the Nominatim search API.
"""

from typing import Optional
import logging
import requests
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from models.entities import GeocodeCandidate, GeocodeResult
from domain.address_resolution import candidate_query_string, parse_geocode_match
from middleware.error_handler import UpstreamServiceError
from services.redis import RedisService

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

DEFAULT_NOMINATIM_BASE_URL = "https://nominatim.openstreetmap.org"
DEFAULT_USER_AGENT = "alaga-help-api/1.0"
SERVICE_NAME = "nominatim"

# Cached marker for queries that matched nothing
NO_MATCH = "no-match"


class NominatimGeocoder:
    """Runs one structured search per candidate and keeps the first match."""

    def __init__(
        self,
        base_url: str = DEFAULT_NOMINATIM_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
        cache: Optional[RedisService] = None
    ):
        self.base_url = base_url.rstrip('/')
        self.user_agent = user_agent
        self.timeout = timeout
        self.session = session or requests.Session()
        self.cache = cache

    def search(self, candidate: GeocodeCandidate) -> Optional[GeocodeResult]:
        """
        Query the geocoder for one candidate.

        Args:
            candidate: Structured query parameters

        Returns:
            GeocodeResult for the first usable match, None when nothing matched

        Raises:
            UpstreamServiceError: request failed or the body is not a JSON list
        """
        query = candidate_query_string(candidate)
        cache_key = f"geocode:{query}"

        with tracer.start_as_current_span("geocode.candidate") as span:
            span.set_attributes({
                "geocoding.city": candidate.city,
                "geocoding.include_district": candidate.include_district
            })

            if self.cache is not None:
                cached = self.cache.get(cache_key)
                if cached == NO_MATCH:
                    span.set_attribute("geocoding.cache", "hit")
                    return None
                if isinstance(cached, dict):
                    span.set_attribute("geocoding.cache", "hit")
                    return GeocodeResult.model_validate(cached)

            try:
                response = self.session.get(
                    f"{self.base_url}/search",
                    params=candidate.params(),
                    headers={"User-Agent": self.user_agent},
                    timeout=self.timeout
                )
                response.raise_for_status()
                matches = response.json()
            except requests.RequestException as e:
                span.set_status(Status(StatusCode.ERROR, "Geocoding request failed"))
                logger.error("Geocoding request failed", extra={"query": query, "error": str(e)})
                raise UpstreamServiceError(SERVICE_NAME, "Falha ao consultar o serviço de mapas") from e
            except ValueError as e:
                span.set_status(Status(StatusCode.ERROR, "Invalid JSON"))
                logger.error("Geocoding returned invalid JSON", extra={"query": query, "error": str(e)})
                raise UpstreamServiceError(SERVICE_NAME, "Resposta inválida do serviço de mapas") from e

            if not isinstance(matches, list):
                raise UpstreamServiceError(SERVICE_NAME, "Resposta inválida do serviço de mapas")

            span.set_attribute("geocoding.matches", len(matches))

            result = parse_geocode_match(matches[0]) if matches else None

            if self.cache is not None:
                self.cache.set(cache_key, result.model_dump() if result else NO_MATCH)

            logger.debug(
                "Geocoding search finished",
                extra={"query": query, "matches": len(matches), "found": result is not None}
            )
            return result
