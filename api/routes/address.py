# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Address lookup and coordinate resolution endpoints.

Stateless counterparts of the form pipeline: a client may look up a CEP
and resolve the resulting address to coordinates without a form session.
"""

from flask import request, jsonify, current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from pydantic import ValidationError
import logging

from models.entities import StructuredAddress, CoordinateState, Advisory
from models.requests import CepPath, strip_non_digits
from models.responses import CoordinateResolutionResponse
from domain.address_resolution import (
    resolve_coordinates, coordinate_state_from_result,
    NOT_FOUND_TITLE, NOT_FOUND_MESSAGE, COORDINATE_ERROR_MESSAGE
)
from domain.notifications import field_errors_from_validation
from middleware.error_handler import ValidationException

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

address_tag = Tag(name="Address", description="Postal-code lookup and geocoding")
address_bp = APIBlueprint(
    'address',
    __name__,
    url_prefix='/api/address',
    abp_tags=[address_tag]
)


@address_bp.get('/<cep>')
def lookup_address(path: CepPath):
    """
    Look up the address of a postal code.

    Punctuation in the CEP is ignored; anything other than eight digits
    is rejected before calling the lookup service.
    """
    cep = strip_non_digits(path.cep)

    with tracer.start_as_current_span("address.lookup_endpoint", attributes={"cep.value": cep}):
        address = current_app.cep_service.lookup(cep)

        response = current_app.hal_formatter.builder.build_resource_response(
            address.model_dump(),
            f"/api/address/{cep}",
            {
                "coordinates": current_app.hal_formatter.builder.link_builder.build_link(
                    "/api/address/coordinates",
                    method="POST",
                    content_type="application/json",
                    title="Resolve coordinates"
                )
            }
        )
        return jsonify(response), 200


@address_bp.post('/coordinates')
def resolve_address_coordinates():
    """
    Resolve a structured address to map coordinates.

    Tries the address with its district first and without it second. When
    neither query matches, the response carries the coordinate errors and
    the advisory the form must show.
    """
    with tracer.start_as_current_span("address.resolve_coordinates") as span:
        request_data = request.get_json(silent=True)
        if not isinstance(request_data, dict):
            raise ValidationException("Missing request body")

        try:
            address = StructuredAddress.model_validate(request_data)
        except ValidationError as e:
            field_errors = field_errors_from_validation(e)
            raise ValidationException(
                "Invalid address",
                [{"field": name, "message": message} for name, message in field_errors.items()]
            )

        outcome = resolve_coordinates(address, current_app.geocoder.search)
        span.set_attributes({
            "resolution.status": outcome.status.value,
            "resolution.attempts": outcome.attempts
        })

        if outcome.is_resolved:
            body = CoordinateResolutionResponse(
                status=outcome.status.value,
                result=outcome.result,
                coordinates=coordinate_state_from_result(outcome.result),
                attempts=outcome.attempts
            )
        else:
            body = CoordinateResolutionResponse(
                status=outcome.status.value,
                coordinates=CoordinateState(),
                attempts=outcome.attempts,
                errors={
                    "latitude": COORDINATE_ERROR_MESSAGE,
                    "longitude": COORDINATE_ERROR_MESSAGE
                },
                advisory=Advisory(title=NOT_FOUND_TITLE, message=NOT_FOUND_MESSAGE, need_button=True)
            )

        logger.info(
            "Coordinate resolution served",
            extra={"status": outcome.status.value, "attempts": outcome.attempts, "city": address.city}
        )

        response = current_app.hal_formatter.builder.build_resource_response(
            body.model_dump(by_alias=True, mode='json'),
            "/api/address/coordinates"
        )
        return jsonify(response), 200
