# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Flooding notification form session endpoints.

A form session holds the server-side state of one notification form. The
client feeds it raw postal-code input, map points and field edits, and
renders whatever snapshot comes back; the HAL links tell it which actions
are currently allowed.
"""

from typing import Any, Dict, Type
from flask import request, jsonify, current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from pydantic import BaseModel, ValidationError
import logging

from models.requests import SessionPath, ZipcodeInputRequest, MapPointRequest, UpdateFormFieldsRequest
from domain.form_state import (
    FieldsEdited, AdvisoryDismissed, SubmissionRejected, SubmissionCompleted, blocking_errors
)
from domain.notifications import (
    validate_submission, build_persistence_payload, field_errors_from_validation
)
from middleware.error_handler import (
    ValidationException, ConflictException, UpstreamServiceError, ServiceUnavailableException
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

form_sessions_tag = Tag(name="Form Sessions", description="Server-side flooding notification form state")
form_sessions_bp = APIBlueprint(
    'form_sessions',
    __name__,
    url_prefix='/api/form-sessions',
    abp_tags=[form_sessions_tag]
)

SUBMISSION_FAILED_MESSAGE = "Ocorreu um erro, tente novamente!"
ALREADY_SUBMITTED_MESSAGE = "Esta notificação já foi enviada."


def _parse_body(model: Type[BaseModel]) -> BaseModel:
    """Validate the JSON body against a request model."""
    request_data = request.get_json(silent=True)
    if not isinstance(request_data, dict):
        raise ValidationException("Missing request body")
    try:
        return model.model_validate(request_data)
    except ValidationError as e:
        field_errors = field_errors_from_validation(e)
        raise ValidationException(
            "Request validation failed",
            [{"field": name, "message": message} for name, message in field_errors.items()]
        )


def _snapshot(session) -> Dict[str, Any]:
    return current_app.hal_formatter.format_form_session(session.id, session.store.state)


@form_sessions_bp.post('')
def create_form_session():
    """Open a blank form with today's date and the default map position."""
    session = current_app.form_sessions.create()
    return jsonify(_snapshot(session)), 201


@form_sessions_bp.get('/<session_id>')
def get_form_session(path: SessionPath):
    """Current snapshot of a form session."""
    session = current_app.form_sessions.get(path.session_id)
    return jsonify(_snapshot(session)), 200


@form_sessions_bp.patch('/<session_id>')
def edit_form_fields(path: SessionPath):
    """Apply manual edits to free-text fields."""
    session = current_app.form_sessions.get(path.session_id)
    edits = _parse_body(UpdateFormFieldsRequest)
    session.store.dispatch(FieldsEdited(edits.model_dump(exclude_none=True)))
    return jsonify(_snapshot(session)), 200


@form_sessions_bp.delete('/<session_id>')
def discard_form_session(path: SessionPath):
    """Close a form session."""
    current_app.form_sessions.get(path.session_id)
    current_app.form_sessions.discard(path.session_id)
    return '', 204


@form_sessions_bp.put('/<session_id>/zipcode')
def update_zipcode(path: SessionPath):
    """
    Feed the current contents of the postal-code input.

    The value is stored at once. Lookup and geocoding start only after the
    value has stayed unchanged for the debounce delay and has eight digits.
    """
    session = current_app.form_sessions.get(path.session_id)
    zipcode_input = _parse_body(ZipcodeInputRequest)

    with tracer.start_as_current_span(
        "form_session.zipcode",
        attributes={"session.id": session.id, "zipcode.length": len(zipcode_input.value)}
    ):
        session.pipeline.on_zipcode_input(zipcode_input.value)

    return jsonify(_snapshot(session)), 202 if session.pipeline.debouncer.pending else 200


@form_sessions_bp.post('/<session_id>/point')
def select_map_point(path: SessionPath):
    """Take coordinates from a point the user placed on the map."""
    session = current_app.form_sessions.get(path.session_id)
    point = _parse_body(MapPointRequest)
    session.pipeline.select_point(point.latitude, point.longitude, point.bounds)
    logger.info("Map point selected", extra={"session_id": session.id, "has_bounds": bool(point.bounds)})
    return jsonify(_snapshot(session)), 200


@form_sessions_bp.post('/<session_id>/advisory/dismiss')
def dismiss_advisory(path: SessionPath):
    """Close the "not found" dialog; coordinate errors stay until a point is chosen."""
    session = current_app.form_sessions.get(path.session_id)
    session.store.dispatch(AdvisoryDismissed())
    return jsonify(_snapshot(session)), 200


@form_sessions_bp.post('/<session_id>/submit')
def submit_form_session(path: SessionPath):
    """
    Validate the form and forward it to the persistence endpoint.

    Rejected while a resolution is running and once the form was saved.
    Validation errors are stored on the session and returned without
    calling the endpoint.
    """
    session = current_app.form_sessions.get(path.session_id)

    with session.submit_lock, tracer.start_as_current_span(
        "form_session.submit", attributes={"session.id": session.id}
    ) as span:
        state = session.store.state
        if state.submitted:
            span.set_status(Status(StatusCode.ERROR, "Already submitted"))
            raise ConflictException(ALREADY_SUBMITTED_MESSAGE)
        if state.searching:
            span.set_status(Status(StatusCode.ERROR, "Resolution in progress"))
            raise ConflictException("Aguarde a busca do endereço terminar antes de enviar.")

        validation = validate_submission(state.submission_payload())
        field_errors = dict(validation.field_errors)
        field_errors.update(blocking_errors(state))

        if field_errors:
            session.store.dispatch(SubmissionRejected(field_errors))
            span.set_attribute("submission.invalid_fields", len(field_errors))
            logger.info(
                "Form submission rejected",
                extra={"session_id": session.id, "fields": sorted(field_errors)}
            )
            raise ValidationException(
                "Verifique os campos do formulário",
                [{"field": name, "message": message} for name, message in field_errors.items()]
            )

        try:
            result = current_app.notification_client.create(build_persistence_payload(validation.request))
        except (UpstreamServiceError, ServiceUnavailableException):
            session.store.dispatch(SubmissionCompleted(False))
            raise

        session.store.dispatch(SubmissionCompleted(result.success))
        span.set_attribute("submission.status_code", result.status_code)

        if not result.success:
            raise UpstreamServiceError("notification-api", SUBMISSION_FAILED_MESSAGE)

        return jsonify(_snapshot(session)), 201
