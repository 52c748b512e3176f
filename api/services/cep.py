# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Postal-code (CEP) lookup client.

Resolves a Brazilian CEP to a structured address through the ViaCEP
public API. Successful lookups are cached when Redis is configured.
"""

from typing import Optional
import logging
import requests
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from models.entities import StructuredAddress
from domain.address_resolution import is_complete_cep
from middleware.error_handler import AddressNotFoundError, UpstreamServiceError, ValidationException
from services.redis import RedisService

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

DEFAULT_VIACEP_BASE_URL = "https://viacep.com.br/ws"
SERVICE_NAME = "viacep"


class CepService:
    """Client for the ViaCEP address lookup API."""

    def __init__(
        self,
        base_url: str = DEFAULT_VIACEP_BASE_URL,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
        cache: Optional[RedisService] = None
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.cache = cache

    def _cache_key(self, cep: str) -> str:
        return f"cep:{cep}"

    def lookup(self, cep: str) -> StructuredAddress:
        """
        Look up the address for a postal code.

        Args:
            cep: Eight-digit postal code

        Returns:
            StructuredAddress with empty strings for absent fields

        Raises:
            ValidationException: cep is not eight digits
            AddressNotFoundError: the service has no address for cep
            UpstreamServiceError: the service is unreachable or answered garbage
        """
        if not is_complete_cep(cep):
            raise ValidationException(
                "CEP deve conter 8 dígitos!",
                [{"field": "zipcode", "message": "CEP deve conter 8 dígitos!"}]
            )

        with tracer.start_as_current_span("address.lookup") as span:
            span.set_attribute("cep.value", cep)

            if self.cache is not None:
                cached = self.cache.get(self._cache_key(cep))
                if isinstance(cached, dict):
                    span.set_attribute("cep.cache", "hit")
                    return StructuredAddress.model_validate(cached)

            url = f"{self.base_url}/{cep}/json/"
            try:
                response = self.session.get(url, timeout=self.timeout)
                response.raise_for_status()
                payload = response.json()
            except requests.RequestException as e:
                span.set_status(Status(StatusCode.ERROR, "Lookup request failed"))
                logger.error(
                    "CEP lookup request failed",
                    extra={"cep": cep, "url": url, "error": str(e)}
                )
                raise UpstreamServiceError(SERVICE_NAME, "Falha ao consultar o CEP") from e
            except ValueError as e:
                span.set_status(Status(StatusCode.ERROR, "Invalid JSON"))
                logger.error("CEP lookup returned invalid JSON", extra={"cep": cep, "error": str(e)})
                raise UpstreamServiceError(SERVICE_NAME, "Resposta inválida do serviço de CEP") from e

            if not isinstance(payload, dict):
                raise UpstreamServiceError(SERVICE_NAME, "Resposta inválida do serviço de CEP")

            # ViaCEP answers unknown codes with 200 and {"erro": true}
            if payload.get('erro'):
                span.set_attribute("cep.found", False)
                logger.info("CEP not found", extra={"cep": cep})
                raise AddressNotFoundError(cep)

            address = StructuredAddress.from_viacep(payload)
            if not address.zipcode:
                address = address.model_copy(update={'zipcode': cep})

            span.set_attributes({
                "cep.found": True,
                "cep.city": address.city,
                "cep.state": address.state
            })

            if self.cache is not None:
                self.cache.set(self._cache_key(cep), address.model_dump())

            logger.info("CEP resolved", extra={"cep": cep, "city": address.city, "state": address.state})
            return address
